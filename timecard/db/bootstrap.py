"""
Schema bootstrap - applies the Alembic migrations under migrations/
"""
import logging
import os
from typing import Optional

from alembic import command
from alembic.config import Config

from timecard.db.session import SQLALCHEMY_DATABASE_URL

logger = logging.getLogger(__name__)

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def migration_config(database_url: Optional[str] = None) -> Config:
    cfg = Config(os.path.join(BASE_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(BASE_DIR, "migrations"))
    # configparser interpolation: a literal % in a password must be doubled
    cfg.set_main_option("sqlalchemy.url", (database_url or SQLALCHEMY_DATABASE_URL).replace("%", "%%"))
    return cfg


def run_migrations(database_url: Optional[str] = None) -> None:
    """Upgrade the database to the latest revision"""
    command.upgrade(migration_config(database_url), "head")
    logger.info("Database schema is at head")
