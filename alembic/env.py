from logging.config import fileConfig

from sqlalchemy import create_engine
from sqlalchemy import pool

from alembic import context

# Models register themselves on Base.metadata when imported
from mindmuse.db.base import Base, DATABASE_URL
from mindmuse.ai import models as _ai_models  # noqa: F401
from mindmuse.auth import models as _auth_models  # noqa: F401
from mindmuse.learn import models as _learn_models  # noqa: F401
from mindmuse.progress import models as _progress_models  # noqa: F401
from mindmuse.quests import models as _quest_models  # noqa: F401
from mindmuse.todos import models as _todo_models  # noqa: F401

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url() -> str:
    """
    Single source of truth for Alembic DB URL.

    Same normalised URL the application uses (postgres:// is rewritten
    to postgresql+psycopg2:// in mindmuse.db.base).
    """
    return DATABASE_URL


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = get_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connectable = create_engine(get_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
