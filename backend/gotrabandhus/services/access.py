"""
Two-stage request gate.

A request starts UNAUTHENTICATED, becomes AUTHENTICATED once its bearer
token verifies, and PROFILE_COMPLETE once the user's profile passes the
completion check. Each stage either advances or returns a failure; nothing
here mutates state.
"""

import logging
from enum import Enum
from typing import Optional
from gotrabandhus.core.errors import ErrorCode, ServiceResult
from gotrabandhus.core.security import TokenService
from gotrabandhus.schemas.user import UserRecord
from gotrabandhus.services.auth_service import AuthService
from gotrabandhus.services.profile_service import PROFILE_PAGE, is_profile_complete

logger = logging.getLogger(__name__)


class AccessStage(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    PROFILE_COMPLETE = "profile_complete"


def parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an 'Authorization: Bearer <token>' header value"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()


def authenticate(authorization: Optional[str], tokens: TokenService) -> ServiceResult[int]:
    """Stage 1: resolve the user id from the Authorization header"""
    token = parse_bearer_token(authorization)
    if token is None:
        return ServiceResult.failure(ErrorCode.AUTHENTICATION, "Authentication required")

    subject = tokens.verify(token)
    if subject is None:
        return ServiceResult.failure(ErrorCode.AUTHENTICATION, "Invalid or expired token")

    # Stores assign integer ids; anything else was not issued by us
    try:
        user_id = int(subject)
    except ValueError:
        return ServiceResult.failure(ErrorCode.AUTHENTICATION, "Invalid or expired token")
    return ServiceResult.success(user_id)


def require_complete_profile(user_id: int, auth_service: AuthService) -> ServiceResult[UserRecord]:
    """Stage 2: let the request through only if the user's profile is complete"""
    current = auth_service.get_user(user_id)
    if not current.ok:
        return ServiceResult(error=current.error)

    if not is_profile_complete(current.value):
        logger.info(f"User {user_id} blocked by incomplete profile")
        return ServiceResult.failure(
            ErrorCode.PROFILE_INCOMPLETE,
            "Profile incomplete",
            detail="Please complete your profile before accessing this resource",
            redirect_to=PROFILE_PAGE,
        )
    return ServiceResult.success(current.value)
