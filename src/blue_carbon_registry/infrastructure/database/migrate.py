"""Schema migrations through Alembic.

Development and SQLite deployments build tables with ``Database.create_all``;
PostgreSQL deployments apply the revisions under ``infrastructure/migrations``
either with ``blue-carbon-migrate`` or at startup when ``DB_AUTO_MIGRATE`` is set.

Usage:
    blue-carbon-migrate            # upgrade to head
    blue-carbon-migrate --sql      # print the SQL instead of running it
"""

from __future__ import annotations

import argparse
from pathlib import Path

from alembic import command
from alembic.config import Config

from blue_carbon_registry.config import get_settings
from blue_carbon_registry.logging_config import configure_logging, get_logger

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


def alembic_config(database_url: str | None = None) -> Config:
    """Build an Alembic config pointing at the bundled migration scripts."""
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    if database_url:
        config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return config


def upgrade_schema(
    database_url: str | None = None, revision: str = "head", sql: bool = False
) -> None:
    """Apply revisions up to ``revision``.

    Runs its own event loop, so call it from a worker thread inside the app.
    """
    command.upgrade(alembic_config(database_url), revision, sql=sql)
    if not sql:
        logger.info("database.migrated", revision=revision)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Apply registry schema migrations")
    parser.add_argument("--revision", default="head")
    parser.add_argument("--sql", action="store_true", help="emit SQL without connecting")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings)
    upgrade_schema(settings.database_url, args.revision, sql=args.sql)


if __name__ == "__main__":
    main()
