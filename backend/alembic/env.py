"""Alembic environment for the EstateDesk schema.

    alembic upgrade head
    alembic -x url=postgresql://... upgrade head   # target another database
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from estatedesk.config import get_settings
from estatedesk.db.base import Base
from estatedesk.db import models  # noqa: F401 - Import models to register them

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url() -> str:
    """Sync (psycopg2) URL: an explicit -x url=... wins over app settings."""
    url = context.get_x_argument(as_dictionary=True).get("url")
    return url or get_settings().database_url_sync


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of running it against a database."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(get_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
