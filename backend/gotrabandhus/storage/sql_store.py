import logging
from datetime import datetime, timezone
from typing import Any, Optional
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from gotrabandhus.core.database import Base, create_session_factory
from gotrabandhus.core.errors import DuplicateEmailError, StorageError
from gotrabandhus.models.user import User
from gotrabandhus.schemas.user import UserRecord
from gotrabandhus.storage.base import UserStore

logger = logging.getLogger(__name__)


class SqlAlchemyUserStore(UserStore):
    """UserStore backed by the SQLAlchemy users table"""

    name = "sql"

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = create_session_factory(engine)

    def create_schema(self) -> None:
        # In production, use migrations instead of create_all
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise StorageError("Could not create database schema") from e

    def ping(self) -> None:
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StorageError("Database is unreachable") from e

    def reset_connections(self) -> None:
        self.engine.dispose()

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        db = self.SessionLocal()
        try:
            user = db.query(User).filter(User.email == email).first()
            return UserRecord.model_validate(user) if user else None
        except SQLAlchemyError as e:
            raise StorageError("Error fetching user by email") from e
        finally:
            db.close()

    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        db = self.SessionLocal()
        try:
            user = db.query(User).filter(User.id == user_id).first()
            return UserRecord.model_validate(user) if user else None
        except SQLAlchemyError as e:
            raise StorageError("Error fetching user by id") from e
        finally:
            db.close()

    def insert(self, fields: dict[str, Any]) -> UserRecord:
        db = self.SessionLocal()
        try:
            db_user = User(**fields)
            db.add(db_user)
            db.commit()
            # Refresh to load auto-generated fields (id, timestamps)
            db.refresh(db_user)
            return UserRecord.model_validate(db_user)
        except IntegrityError as e:
            # Two registrations for the same email can both pass the
            # service's lookup; the unique index rejects the second
            db.rollback()
            raise DuplicateEmailError(fields.get("email")) from e
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError("Error creating user") from e
        finally:
            db.close()

    def update(self, user_id: int, fields: dict[str, Any]) -> Optional[UserRecord]:
        db = self.SessionLocal()
        try:
            db_user = db.query(User).filter(User.id == user_id).first()
            if db_user is None:
                return None
            for key, value in fields.items():
                setattr(db_user, key, value)
            db_user.updated_at = datetime.now(timezone.utc)
            db.commit()
            db.refresh(db_user)
            return UserRecord.model_validate(db_user)
        except IntegrityError as e:
            db.rollback()
            raise DuplicateEmailError(fields.get("email")) from e
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError("Error updating user") from e
        finally:
            db.close()
