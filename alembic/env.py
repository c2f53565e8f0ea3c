import importlib
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from travelbook.core.config import settings
from travelbook.db.session import Base

# every module that declares tables on Base.metadata
MODEL_MODULES = (
    "user",
    "paket_trip",
    "travel",
    "booking",
    "payment_proof",
    "notification",
    "audit_log",
)
for name in MODEL_MODULES:
    importlib.import_module(f"travelbook.models.{name}")

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# start_api.py may already have set the URL; otherwise take it from settings
url = config.get_main_option("sqlalchemy.url") or settings.DATABASE_URL
if not url:
    raise RuntimeError("DATABASE_URL is not set")

target_metadata = Base.metadata


def _options(url: str) -> dict:
    # SQLite cannot ALTER most constraints in place
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    context.configure(url=url, literal_binds=True, dialect_opts={"paramstyle": "named"}, **_options(url))
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **_options(url))
        with context.begin_transaction():
            context.run_migrations()
    engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
