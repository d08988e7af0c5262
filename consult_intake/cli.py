from __future__ import annotations

import argparse
import logging
import sys

from consult_intake.api import create_app, run_api_server
from consult_intake.logging_utils import setup_logging
from consult_intake.mariadb import apply_mariadb_migrations, ping_mariadb
from consult_intake.models import AppSettings
from consult_intake.settings import load_settings
from consult_intake.submission_service import build_pipeline

LOGGER = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(prog="consult-intake")
    parser.add_argument("command", choices=["api-run", "migrate", "db-ping"])
    args = parser.parse_args()

    settings = load_settings()
    setup_logging(
        settings.log_level,
        settings.log_dir,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )

    if args.command == "migrate":
        return run_migrate(settings)
    if args.command == "db-ping":
        return run_db_ping(settings)
    return run_api(settings)


def run_api(settings: AppSettings) -> int:
    pipeline = build_pipeline(settings)
    app = create_app(pipeline, store_settings=settings.store)
    try:
        run_api_server(settings.api_host, settings.api_port, app)
    except KeyboardInterrupt:
        LOGGER.info("Shutting down.")
    finally:
        if pipeline.dispatcher is not None:
            pipeline.dispatcher.shutdown(wait=True)
    return 0


def run_migrate(settings: AppSettings) -> int:
    if settings.store is None:
        LOGGER.error("MARIADB_HOST and MARIADB_PASSWORD must be set to run migrations.")
        return 1
    applied = apply_mariadb_migrations(settings.store)
    LOGGER.info("Applied migrations=%s", applied)
    return 0


def run_db_ping(settings: AppSettings) -> int:
    if settings.store is None:
        LOGGER.error("MARIADB_HOST and MARIADB_PASSWORD must be set.")
        return 1
    ping_mariadb(settings.store)
    LOGGER.info("Database is reachable.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
