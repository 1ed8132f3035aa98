"""Alembic migrations, run with the synchronous driver matching DATABASE_URL."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import make_url

from smileforward.persistence.database import Base
from smileforward.persistence.models import *  # noqa: F401, F403
from smileforward.settings import get_async_database_url

SYNC_DRIVERS = {
    "postgresql+asyncpg": "postgresql+psycopg2",
    "sqlite+aiosqlite": "sqlite",
}

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def sync_database_url() -> str:
    url = make_url(get_async_database_url())
    url = url.set(drivername=SYNC_DRIVERS.get(url.drivername, url.drivername))
    return url.render_as_string(hide_password=False)


def run_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    context.configure(
        url=sync_database_url(),
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = create_engine(sync_database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, target_metadata=Base.metadata, compare_type=True)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
