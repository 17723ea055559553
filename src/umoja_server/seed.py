"""Catalog seeding CLI — ``umoja-seed``.

Loads a YAML catalog (buckets and their questions) into the database.
Buckets that already exist, matched by name and age band, are left as they
are, so the command can be re-run after every deploy.

Examples::

    # Seed the bundled catalog
    uv run umoja-seed

    # Seed an operator-supplied catalog
    uv run umoja-seed --catalog ./catalog.yaml

    # Validate a catalog file without touching the database
    uv run umoja-seed --catalog ./catalog.yaml --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

logger = logging.getLogger(__name__)


async def run_seed(catalog_path: str | None = None) -> tuple[int, int]:
    """Seed the catalog and return ``(buckets_created, questions_created)``.

    Creates its own engine and session, commits once, and disposes the
    engine before returning.
    """
    # Lazy imports to avoid loading DB machinery at module import time
    from umoja_db.config import get_async_url
    from umoja_db.engine import build_engine, build_session_factory, dispose_engine

    from umoja_assessment.catalog import CatalogReader, load_catalog
    from umoja_assessment.errors import ConfigurationError

    catalog = load_catalog(catalog_path)

    url = get_async_url()
    if url is None:
        raise ConfigurationError("DATABASE_URL (or PG_PASSWORD) is not configured")

    engine = build_engine(url)
    try:
        factory = build_session_factory(engine)
        async with factory() as db:
            created = await CatalogReader().seed_catalog(db, catalog)
            await db.commit()
        return created
    finally:
        await dispose_engine(engine)


def cli() -> None:
    """Console-script entry point: ``umoja-seed``."""
    parser = argparse.ArgumentParser(
        prog="umoja-seed",
        description="Load the assessment catalog into the database.",
    )
    parser.add_argument(
        "--catalog",
        default=None,
        help="Path to a catalog YAML file (default: the bundled catalog)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Only validate the catalog file; do not connect to the database",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if args.dry_run:
        from umoja_assessment.catalog import load_catalog

        catalog = load_catalog(args.catalog)
        questions = sum(len(b.questions) for b in catalog.buckets)
        print(f"Catalog {catalog.version}: {len(catalog.buckets)} bucket(s), {questions} question(s)")
        sys.exit(0)

    buckets, questions = asyncio.run(run_seed(args.catalog))
    print(f"Created {buckets} bucket(s), {questions} question(s)")
    sys.exit(0)
