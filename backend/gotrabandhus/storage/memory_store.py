import itertools
import threading
from datetime import datetime, timezone
from typing import Any, Optional
from gotrabandhus.core.errors import DuplicateEmailError
from gotrabandhus.schemas.user import UserRecord
from gotrabandhus.storage.base import UserStore


class InMemoryUserStore(UserStore):
    """Per-process UserStore for development and tests; data is lost on restart"""

    name = "memory"

    def __init__(self) -> None:
        self._users: dict[int, UserRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def _email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        return any(
            user.email == email and user.id != exclude_id
            for user in self._users.values()
        )

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return user.model_copy()
        return None

    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    def insert(self, fields: dict[str, Any]) -> UserRecord:
        with self._lock:
            if self._email_taken(fields["email"]):
                raise DuplicateEmailError(fields["email"])
            now = datetime.now(timezone.utc)
            user = UserRecord(id=next(self._ids), created_at=now, updated_at=None, **fields)
            self._users[user.id] = user
            return user.model_copy()

    def update(self, user_id: int, fields: dict[str, Any]) -> Optional[UserRecord]:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            if "email" in fields and self._email_taken(fields["email"], exclude_id=user_id):
                raise DuplicateEmailError(fields["email"])
            updated = user.model_copy(
                update={**fields, "updated_at": datetime.now(timezone.utc)})
            self._users[user_id] = updated
            return updated.model_copy()
