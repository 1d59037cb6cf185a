"""
Registration, login and profile orchestration.

Every public method returns a ServiceResult. Wrong passwords, duplicate
emails and missing users are ordinary outcomes; only storage failures and
hashing failures raise.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional
from pydantic.alias_generators import to_camel
from gotrabandhus.core.errors import DuplicateEmailError, ErrorCode, ServiceResult
from gotrabandhus.core.security import CredentialService, TokenService
from gotrabandhus.schemas.user import LoginRequest, ProfileUpdateRequest, RegisterRequest, UserRecord
from gotrabandhus.services.profile_service import (
    PROFILE_PAGE,
    is_profile_complete,
    missing_profile_fields,
    redirect_after_login,
    redirect_after_update,
)
from gotrabandhus.storage.base import UserStore

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
DUPLICATE_EMAIL_MESSAGE = "User with this email already exists"
USER_NOT_FOUND_MESSAGE = "User not found"

# Client payloads can only touch these; password, id, timestamps and
# profile_completed never reach the store from a profile update
UPDATABLE_PROFILE_FIELDS = frozenset(ProfileUpdateRequest.model_fields)


@dataclass
class AuthSession:
    user: UserRecord
    token: str
    redirect_to: str


@dataclass
class ProfileUpdate:
    user: UserRecord
    redirect_to: Optional[str]


@dataclass
class CompletionStatus:
    is_complete: bool
    redirect_to: Optional[str]
    missing_fields: list[str] = field(default_factory=list)


def normalize_email(email: str) -> str:
    return email.lower()


class AuthService:
    def __init__(self, store: UserStore, credentials: CredentialService, tokens: TokenService):
        self.store = store
        self.credentials = credentials
        self.tokens = tokens

    def register(self, data: RegisterRequest) -> ServiceResult[AuthSession]:
        """Create an account and sign it in; new accounts always go to the profile page next"""
        email = normalize_email(data.email)

        # Explicit check gives a clear error; the store's unique constraint
        # still catches concurrent registrations below
        if self.store.find_by_email(email) is not None:
            logger.info("Registration rejected: email already registered")
            return ServiceResult.failure(ErrorCode.DUPLICATE_RESOURCE, DUPLICATE_EMAIL_MESSAGE)

        fields: dict[str, Any] = {
            "first_name": data.first_name,
            "last_name": data.last_name,
            "nickname": data.nickname,
            "email": email,
            "hashed_password": self.credentials.hash(data.password),
            "phone": data.phone,
            "gender": None,
            "current_city": "",
            "current_state": "",
            "current_country": "",
            "gotra": "",
            "pravara": "",
            "community": "",
            "primary_language": "",
            "hide_email": False,
            "hide_phone": False,
            "hide_dob": False,
        }
        fields["profile_completed"] = is_profile_complete(fields)

        try:
            user = self.store.insert(fields)
        except DuplicateEmailError:
            logger.info("Registration rejected: email registered concurrently")
            return ServiceResult.failure(ErrorCode.DUPLICATE_RESOURCE, DUPLICATE_EMAIL_MESSAGE)

        logger.info(f"Registered user {user.id}")
        return ServiceResult.success(
            AuthSession(user=user, token=self.tokens.issue(user.id), redirect_to=PROFILE_PAGE))

    def login(self, data: LoginRequest) -> ServiceResult[AuthSession]:
        """Check credentials and issue a token"""
        user = self.store.find_by_email(normalize_email(data.email))

        # Same error for unknown email and wrong password so responses
        # cannot be used to discover registered addresses. An unknown email
        # still pays for one bcrypt check so timing does not give it away.
        if user is None:
            self.credentials.verify_dummy(data.password)
            logger.info("Login failed")
            return ServiceResult.failure(ErrorCode.AUTHENTICATION, INVALID_CREDENTIALS_MESSAGE)
        if not self.credentials.verify(data.password, user.hashed_password):
            logger.info("Login failed")
            return ServiceResult.failure(ErrorCode.AUTHENTICATION, INVALID_CREDENTIALS_MESSAGE)

        logger.info(f"User {user.id} logged in")
        return ServiceResult.success(AuthSession(
            user=user,
            token=self.tokens.issue(user.id),
            redirect_to=redirect_after_login(user.profile_completed),
        ))

    def get_user(self, user_id: int) -> ServiceResult[UserRecord]:
        user = self.store.find_by_id(user_id)
        if user is None:
            logger.warning(f"Valid token references missing user {user_id}")
            return ServiceResult.failure(ErrorCode.NOT_FOUND, USER_NOT_FOUND_MESSAGE)
        return ServiceResult.success(user)

    def update_profile(self, user_id: int, changes: dict[str, Any]) -> ServiceResult[ProfileUpdate]:
        """
        Merge changes onto the stored profile and recompute completion.

        Keys outside UPDATABLE_PROFILE_FIELDS are dropped. The completion flag
        is derived from the merged record, never taken from the client.
        """
        current = self.get_user(user_id)
        if not current.ok:
            return ServiceResult(error=current.error)
        user = current.value

        changes = {key: value for key, value in changes.items() if key in UPDATABLE_PROFILE_FIELDS}

        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
            if changes["email"] != user.email:
                existing = self.store.find_by_email(changes["email"])
                if existing is not None and existing.id != user_id:
                    return ServiceResult.failure(ErrorCode.DUPLICATE_RESOURCE, DUPLICATE_EMAIL_MESSAGE)

        merged = {**user.model_dump(), **changes}
        changes["profile_completed"] = is_profile_complete(merged)

        try:
            updated = self.store.update(user_id, changes)
        except DuplicateEmailError:
            return ServiceResult.failure(ErrorCode.DUPLICATE_RESOURCE, DUPLICATE_EMAIL_MESSAGE)
        if updated is None:
            logger.warning(f"User {user_id} disappeared during profile update")
            return ServiceResult.failure(ErrorCode.NOT_FOUND, USER_NOT_FOUND_MESSAGE)

        if updated.profile_completed and not user.profile_completed:
            logger.info(f"User {user_id} completed their profile")
        return ServiceResult.success(ProfileUpdate(
            user=updated, redirect_to=redirect_after_update(updated.profile_completed)))

    def check_completion(self, user_id: int) -> ServiceResult[CompletionStatus]:
        """Evaluate completion live from the stored record"""
        current = self.get_user(user_id)
        if not current.ok:
            return ServiceResult(error=current.error)

        complete = is_profile_complete(current.value)
        return ServiceResult.success(CompletionStatus(
            is_complete=complete,
            redirect_to=None if complete else PROFILE_PAGE,
            missing_fields=[to_camel(name) for name in missing_profile_fields(current.value)],
        ))
