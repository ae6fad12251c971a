"""Programmatic access to the Alembic revision chain under ``migrations/``."""

from pathlib import Path

from alembic import command
from alembic.config import Config

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def alembic_config(database_url_sync: str) -> Config:
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    config.set_main_option("sqlalchemy.url", database_url_sync)
    return config


def upgrade_to_head(database_url_sync: str) -> None:
    """Apply every pending revision; already-applied ones are skipped."""
    command.upgrade(alembic_config(database_url_sync), "head")
