"""Database initialization utilities."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from devstudio.db import models  # noqa: F401 - ensure model metadata is registered
from devstudio.db.bootstrap import ensure_default_categories, ensure_devstudio_app
from devstudio.db.session import Base, SessionLocal, engine

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create tables and seed categories plus the Dev Studio system app."""
    try:
        Base.metadata.create_all(bind=engine)

        db = SessionLocal()
        try:
            categories = ensure_default_categories(db)
            devstudio_id = ensure_devstudio_app(db).id
        finally:
            db.close()

        logger.info(
            "Seeded %d categories; Dev Studio app id=%s",
            len(categories),
            devstudio_id,
        )
    except SQLAlchemyError:
        logger.exception("Database initialization failed.")
        raise
