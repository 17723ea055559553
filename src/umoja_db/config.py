"""Database configuration — reads connection parameters from environment.

Supports two modes for the service-role connection:
1. A single ``DATABASE_URL`` env var (takes precedence).
2. Individual ``PG_HOST``, ``PG_PORT``, ``PG_USER``, ``PG_PASSWORD``,
   ``PG_DATABASE`` env vars (convenient for docker-compose).  Only used
   when ``PG_PASSWORD`` is set — there is no built-in credential.

A second, optional ``DATABASE_READONLY_URL`` points at a low-privilege
(public / anon) role used for catalog reads.  It falls back to the
service-role URL.

Every getter returns ``None`` when nothing is configured so the caller can
decide how to report it.  Both ``sync_url`` (Alembic) and ``async_url``
(runtime engine) variants are exposed.
"""

import os


def _build_url_from_parts() -> str | None:
    """Construct a PostgreSQL connection string from individual env vars."""
    password = os.getenv("PG_PASSWORD")
    if not password:
        return None
    host = os.getenv("PG_HOST", "localhost")
    port = os.getenv("PG_PORT", "5432")
    user = os.getenv("PG_USER", "umoja")
    database = os.getenv("PG_DATABASE", "umoja")
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


def _to_async(url: str) -> str:
    """Ensure the asyncpg driver prefix is present."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def get_sync_url() -> str | None:
    """Return a synchronous (psycopg2 / libpq) connection URL.

    Used by Alembic which runs migrations synchronously.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        # Normalise async driver prefix if the caller set an asyncpg URL
        return url.replace("postgresql+asyncpg://", "postgresql://")
    return _build_url_from_parts()


def get_async_url() -> str | None:
    """Return the service-role asyncpg URL, or ``None`` if unconfigured."""
    url = os.getenv("DATABASE_URL") or _build_url_from_parts()
    if not url:
        return None
    return _to_async(url)


def get_readonly_async_url() -> str | None:
    """Return the public/anon-role asyncpg URL, falling back to the service URL."""
    url = os.getenv("DATABASE_READONLY_URL")
    if url:
        return _to_async(url)
    return get_async_url()
