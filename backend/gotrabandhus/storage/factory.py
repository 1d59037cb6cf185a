import logging
from gotrabandhus.core.config import Settings
from gotrabandhus.core.database import create_db_engine
from gotrabandhus.storage.base import UserStore
from gotrabandhus.storage.memory_store import InMemoryUserStore
from gotrabandhus.storage.sql_store import SqlAlchemyUserStore

logger = logging.getLogger(__name__)


def create_user_store(settings: Settings) -> UserStore:
    """Build the store selected by STORAGE_BACKEND"""
    if settings.STORAGE_BACKEND == "memory":
        logger.info("Using in-memory user storage")
        return InMemoryUserStore()

    logger.info("Using SQL user storage")
    return SqlAlchemyUserStore(create_db_engine(settings.DATABASE_URL))
