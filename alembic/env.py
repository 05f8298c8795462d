"""
alembic/env.py — migrations for the Study Share record store.

Connection details come from the same DB_* variables the API reads
(loaded from .env when present). DATABASE_URL, if set, wins over them.

Migrations are plain SQL / op.* calls: there is no ORM metadata, so
autogenerate is not used. The runner is synchronous (psycopg2); the API
talks to the same database through asyncpg.
"""
import os
from logging.config import fileConfig
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

from alembic import context

load_dotenv(Path(__file__).parent.parent / ".env")


def _database_url() -> str:
    if os.environ.get("DATABASE_URL"):
        return os.environ["DATABASE_URL"].replace("postgresql://", "postgresql+psycopg2://", 1)
    password = os.environ.get("DB_PASSWORD", "")
    auth = f"{os.environ['DB_USER']}:{password}@" if password else f"{os.environ['DB_USER']}@"
    return (
        f"postgresql+psycopg2://{auth}"
        f"{os.environ.get('DB_HOST', 'localhost')}:{os.environ.get('DB_PORT', '5432')}"
        f"/{os.environ['DB_NAME']}"
    )


config = context.config
config.set_main_option("sqlalchemy.url", _database_url())

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = None


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of executing it (`alembic upgrade head --sql`)."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
