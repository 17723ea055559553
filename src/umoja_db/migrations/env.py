"""Alembic environment for the UMOJA schema.

Migrations run over psycopg2 using ``get_sync_url()``; the application
itself talks to the same database through asyncpg.  Column type changes
are picked up by autogenerate (``compare_type``).
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from umoja_db.config import get_sync_url
from umoja_db.models import Base  # noqa: F401  (registers every table)

# --- Alembic Config ---
config = context.config

# Override the URL placeholder in alembic.ini with the real value from env
_url = get_sync_url()
if _url is None:
    raise RuntimeError(
        "Database is not configured: set DATABASE_URL or PG_PASSWORD/PG_* variables"
    )
config.set_main_option("sqlalchemy.url", _url)

# Set up Python logging from the ini file
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Target metadata for autogenerate support
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout (``alembic upgrade --sql``)."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Connect with a throwaway NullPool engine and apply pending revisions."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
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
