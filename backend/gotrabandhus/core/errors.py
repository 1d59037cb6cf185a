"""
Error taxonomy shared by the services and the HTTP layer.

Business-rule failures (wrong password, duplicate email, incomplete profile)
are returned as ServiceResult values so route handlers can map them to
responses deterministically. Only truly exceptional conditions, such as a
broken storage backend, are raised.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar
from fastapi import status

T = TypeVar("T")


class ErrorCode(str, Enum):
    VALIDATION = "validation_error"
    DUPLICATE_RESOURCE = "duplicate_resource"
    AUTHENTICATION = "authentication_error"
    PROFILE_INCOMPLETE = "profile_incomplete"
    NOT_FOUND = "not_found"


# A token for a missing user is indistinguishable from an invalid token,
# so NOT_FOUND is reported to clients as 401.
ERROR_STATUS_CODES = {
    ErrorCode.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.DUPLICATE_RESOURCE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.NOT_FOUND: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.PROFILE_INCOMPLETE: status.HTTP_403_FORBIDDEN,
}


@dataclass
class ServiceError:
    code: ErrorCode
    message: str
    detail: Optional[str] = None
    redirect_to: Optional[str] = None
    details: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class ServiceResult(Generic[T]):
    """Either a value or a ServiceError, never both"""
    value: Optional[T] = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ServiceResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, code: ErrorCode, message: str, **kwargs: Any) -> "ServiceResult[T]":
        return cls(error=ServiceError(code=code, message=message, **kwargs))


class ApiError(Exception):
    """Raised by the HTTP layer to short-circuit a request with a JSON error body"""

    def __init__(self, error: ServiceError):
        super().__init__(error.message)
        self.error = error
        self.status_code = ERROR_STATUS_CODES[error.code]

    def to_content(self) -> dict[str, Any]:
        content: dict[str, Any] = {"error": self.error.message, "code": self.error.code.value}
        if self.error.detail:
            content["message"] = self.error.detail
        if self.error.details:
            content["details"] = self.error.details
        if self.error.code is ErrorCode.PROFILE_INCOMPLETE:
            content["redirectTo"] = self.error.redirect_to
        return content

    @property
    def headers(self) -> Optional[dict[str, str]]:
        if self.status_code == status.HTTP_401_UNAUTHORIZED:
            return {"WWW-Authenticate": "Bearer"}
        return None


def raise_for_result(result: ServiceResult[T]) -> T:
    """Return the result's value or raise ApiError for its failure"""
    if result.error is not None:
        raise ApiError(result.error)
    return result.value


class StorageError(Exception):
    """The persistence backend failed; the cause is logged, never shown to clients"""


class DuplicateEmailError(Exception):
    """Raised by a store when an insert or update violates email uniqueness"""
