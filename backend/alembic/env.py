"""Alembic environment configuration."""
from logging.config import fileConfig
from sqlalchemy import pool
from alembic import context
import asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from tourney.settings import load_settings
from tourney.infra.db.base import (
    Base,
    normalize_async_pg_url,
    async_pg_url_without_sslmode,
    async_pg_connect_args,
)
from tourney.infra.db.models import *  # noqa: F401, F403

# this is the Alembic Config object
config = context.config

settings = load_settings()

# Same URL normalization as the app (asyncpg driver, sslmode translated to ssl).
_db_url = normalize_async_pg_url(settings.database_url)
config.set_main_option("sqlalchemy.url", async_pg_url_without_sslmode(_db_url))
_db_connect_args = async_pg_connect_args(_db_url)

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    """Run migrations with connection."""
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations in 'online' mode using the async engine."""
    connectable = create_async_engine(
        async_pg_url_without_sslmode(_db_url),
        connect_args=_db_connect_args,
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
