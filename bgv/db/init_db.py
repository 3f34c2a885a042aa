import logging

from bgv.db.session import engine
from bgv.db.base import Base

logger = logging.getLogger(__name__)


def init_db(bind=None):
    """Create all tables that do not exist yet."""
    from bgv.db import models  # noqa: F401 - registers every model with Base.metadata

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured")
