from abc import ABC, abstractmethod
from typing import Any, Optional
from gotrabandhus.schemas.user import UserRecord


class UserStore(ABC):
    """
    Persistence capability used by the services.

    Implementations raise DuplicateEmailError when a write would break email
    uniqueness and StorageError when the backend itself fails. Emails are
    passed in already lowercased.
    """

    name = "base"

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[UserRecord]:
        """Return the user with this email, or None"""

    @abstractmethod
    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        """Return the user with this id, or None"""

    @abstractmethod
    def insert(self, fields: dict[str, Any]) -> UserRecord:
        """Create a user from fields and return it with its assigned id"""

    @abstractmethod
    def update(self, user_id: int, fields: dict[str, Any]) -> Optional[UserRecord]:
        """Apply fields to an existing user; None if the user does not exist"""

    def create_schema(self) -> None:
        """Prepare the backend for use (tables, indexes)"""

    def ping(self) -> None:
        """Raise StorageError if the backend is unreachable"""

    def reset_connections(self) -> None:
        """Drop pooled connections so the next operation reconnects"""
