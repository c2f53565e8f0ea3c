#!/usr/bin/env python3
"""
Container entry point: wait for the database, migrate to head, seed the demo
catalog and accounts, then hand the process over to uvicorn.

Environment:
  SEED_ON_START  "0" skips seeding (default "1")
  API_HOST / API_PORT  uvicorn bind address (default 0.0.0.0:8000)
"""
import logging
import os
import sys

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from travelbook.core.config import settings
from travelbook.core.logging import configure_logging

ROOT = os.path.dirname(os.path.abspath(__file__))
logger = logging.getLogger("start_api")


def migrate() -> None:
    cfg = Config(os.path.join(ROOT, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(ROOT, "alembic"))
    cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    logger.info("Upgrading schema to head")
    command.upgrade(cfg, "head")


def seed() -> None:
    # fresh engine: the app engine may have been created before the tables existed
    from travelbook.seed import run as run_seed

    engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
    try:
        run_seed(sessionmaker(autocommit=False, autoflush=False, bind=engine)())
    finally:
        engine.dispose()


def serve() -> None:
    host = os.getenv("API_HOST", "0.0.0.0")
    port = os.getenv("API_PORT", "8000")
    logger.info("Starting uvicorn on %s:%s", host, port)
    os.execv(sys.executable, [sys.executable, "-m", "uvicorn", "travelbook.main:app", "--host", host, "--port", port])


def main() -> None:
    configure_logging()
    import wait_for_db  # noqa: F401  blocks until Postgres accepts connections

    migrate()
    if os.getenv("SEED_ON_START", "1") != "0":
        seed()
    serve()


if __name__ == "__main__":
    main()
