from typing import Optional
from fastapi import Depends, Header, Request
from gotrabandhus.core.errors import raise_for_result
from gotrabandhus.core.security import TokenService
from gotrabandhus.schemas.user import UserRecord
from gotrabandhus.services.access import AccessStage, authenticate, require_complete_profile
from gotrabandhus.services.auth_service import AuthService


def get_auth_service(request: Request) -> AuthService:
    """Service built once in create_app and shared by all requests"""
    return request.app.state.auth_service


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


async def get_current_user_id(
    request: Request,
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> int:
    """
    Require a valid bearer token.

    Missing, malformed, expired and tampered tokens are all rejected with 401
    before the route handler runs. The resolved id is also kept on
    request.state for logging.
    """
    # Every request starts unauthenticated until its token checks out
    request.state.access_stage = AccessStage.UNAUTHENTICATED
    # Raises ApiError (401) when the token is missing or fails verification
    user_id = raise_for_result(authenticate(authorization, tokens))
    request.state.user_id = user_id
    request.state.access_stage = AccessStage.AUTHENTICATED
    return user_id


async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserRecord:
    """Authenticated user; a token for a user that no longer exists is a 401"""
    return raise_for_result(auth_service.get_user(user_id))


async def require_profile_complete(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserRecord:
    """Authenticated user whose profile is complete; otherwise 403 with a redirect to /profile"""
    user = raise_for_result(require_complete_profile(user_id, auth_service))
    request.state.access_stage = AccessStage.PROFILE_COMPLETE
    return user
