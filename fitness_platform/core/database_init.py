"""Database initialization module.

Creates any missing tables on app startup. Existing tables are left untouched;
schema changes for deployed databases go through the Alembic revisions.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from fitness_platform.models import Base

from .db import get_engine

logger = logging.getLogger(__name__)


def init_database_schema() -> None:
    engine = get_engine()
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        logger.exception("Failed to initialize database schema")
        raise
    logger.info("Database schema initialized")
