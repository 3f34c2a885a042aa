"""
Alembic migration runner, used on startup when RUN_MIGRATIONS=1.
"""
import logging
import os
from alembic.config import Config
from alembic import command
from sqlalchemy import create_engine, text

logger = logging.getLogger(__name__)

# pg_advisory_lock key shared by every API replica
MIGRATION_LOCK_ID = 424242017

ALEMBIC_INI = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "alembic.ini")


def _alembic_config(database_url: str) -> Config:
    alembic_cfg = Config(ALEMBIC_INI)
    alembic_cfg.set_main_option("script_location", os.path.join(os.path.dirname(ALEMBIC_INI), "alembic"))
    # configparser interpolation: URL-encoded passwords contain "%"
    alembic_cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return alembic_cfg


def run_migrations(database_url: str = None):
    """
    Upgrade the schema to the head revision.

    On PostgreSQL a session-level advisory lock serialises concurrent runners;
    other backends run unlocked.
    """
    from bgv.core import config as app_config

    database_url = database_url or app_config.DATABASE_URL
    if not database_url:
        raise ValueError("DATABASE_URL is not set")

    logger.info("Running alembic upgrade head")
    alembic_cfg = _alembic_config(database_url)

    if not database_url.startswith("postgresql"):
        command.upgrade(alembic_cfg, "head")
        logger.info("Migrations complete")
        return

    engine = create_engine(database_url, pool_pre_ping=True)
    try:
        with engine.connect() as lock_conn:
            lock_conn.execute(text("SELECT pg_advisory_lock(:lock_id)"), {"lock_id": MIGRATION_LOCK_ID})
            lock_conn.commit()
            logger.info("Migration lock acquired: lock_id=%s", MIGRATION_LOCK_ID)
            try:
                command.upgrade(alembic_cfg, "head")
                logger.info("Migrations complete")
            finally:
                lock_conn.execute(text("SELECT pg_advisory_unlock(:lock_id)"), {"lock_id": MIGRATION_LOCK_ID})
                lock_conn.commit()
    except Exception:
        logger.exception("Migration failed")
        raise
    finally:
        engine.dispose()
