import asyncio
import logging
import sys

import alembic.config
import uvicorn
from pytest import main as pytest_main

from mathduel.core.logging import configure_logging
from mathduel.db.session import init_db

logger = logging.getLogger(__name__)


def start_dev_server() -> None:
    configure_logging("DEBUG")
    logger.info("Starting development server with reload")
    uvicorn.run("mathduel.main:app", host="0.0.0.0", port=8000, reload=True)


def start_prod_server() -> None:
    configure_logging()
    logger.info("Starting production server")
    uvicorn.run("mathduel.main:app", host="0.0.0.0", port=8000)


def run_migrations() -> None:
    configure_logging()
    logger.info("Running migrations: upgrade head")
    alembic.config.main(argv=["upgrade", "head"])
    logger.info("Migrations completed")


def rollback_migration() -> None:
    configure_logging()
    logger.info("Rolling back migration: downgrade -1")
    alembic.config.main(argv=["downgrade", "-1"])
    logger.info("Migration rollback completed")


def create_migration() -> None:
    configure_logging()
    if len(sys.argv) < 2:
        logger.error("Migration message is required")
        print('Usage: mathduel-migrate-create "your migration message"')
        sys.exit(1)

    message = sys.argv[1]
    logger.info("Creating migration with message: %s", message)
    alembic.config.main(argv=["revision", "--autogenerate", "-m", message])
    logger.info("Migration created")


def initialize_db() -> None:
    configure_logging()
    logger.info("Initializing database")
    asyncio.run(init_db())
    logger.info("Database initialization completed")


def run_coverage() -> None:
    sys.exit(
        pytest_main(
            ["--cov=mathduel", "--cov-report=term-missing", "--no-cov-on-fail"]
        ),
    )
