"""Assessment catalog — reads buckets/questions and seeds them from YAML.

Buckets and questions are static reference data.  At runtime they are read
from the database; ``load_catalog`` + ``seed_catalog`` populate the tables
from ``data/catalog.yaml`` (or an operator-supplied file).
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

import yaml
from sqlalchemy.ext.asyncio import AsyncSession

from umoja_db.models.enums import AgeBand
from umoja_db.repository import AssessmentRepository

from umoja_assessment.constants import BUCKET_ORDER
from umoja_assessment.errors import InvalidInputError, NotFoundError
from umoja_assessment.models.catalog import BucketInfo, Catalog, QuestionInfo

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "catalog.yaml"


def bucket_sort_key(name: str) -> tuple[int, str]:
    """Known buckets first in canonical order, then the rest alphabetically."""
    try:
        return (BUCKET_ORDER.index(name), "")
    except ValueError:
        return (len(BUCKET_ORDER), name)


def parse_age_band(value: str) -> AgeBand:
    try:
        return AgeBand(value)
    except ValueError:
        allowed = ", ".join(b.value for b in AgeBand)
        raise InvalidInputError(
            f"Invalid age band {value!r}; expected one of {allowed}"
        ) from None


def load_catalog(path: Path | str | None = None) -> Catalog:
    """Load and validate a YAML catalog file."""
    path = Path(path) if path is not None else DEFAULT_CATALOG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Missing catalog file: {path}")
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return Catalog.model_validate(raw)


class CatalogReader:
    """Read-side access to buckets and questions, plus catalog seeding.

    Args:
        repo: repository used for all queries; a fresh
            :class:`AssessmentRepository` when omitted.
    """

    def __init__(self, repo: AssessmentRepository | None = None) -> None:
        self._repo = repo or AssessmentRepository()

    async def list_buckets(
        self, db: AsyncSession, age_band: AgeBand | str
    ) -> list[BucketInfo]:
        """Buckets for one age band, in canonical display order."""
        band = parse_age_band(age_band) if isinstance(age_band, str) else age_band
        rows = await self._repo.list_buckets(db, band.value)
        rows = sorted(rows, key=lambda b: bucket_sort_key(b.name))
        return [BucketInfo.model_validate(r) for r in rows]

    async def list_questions(
        self, db: AsyncSession, bucket_id: uuid.UUID
    ) -> list[QuestionInfo]:
        """Questions of a bucket ordered by ``order_index``."""
        bucket = await self._repo.get_bucket(db, bucket_id)
        if bucket is None:
            raise NotFoundError(f"Assessment bucket not found: {bucket_id}")
        rows = await self._repo.list_questions(db, bucket_id)
        return [QuestionInfo.model_validate(r) for r in rows]

    async def seed_catalog(self, db: AsyncSession, catalog: Catalog) -> tuple[int, int]:
        """Insert buckets and questions that do not exist yet.

        Buckets are matched by (name, age_band) and questions by their text
        within a bucket.  Questions missing from an existing bucket are
        appended after its current last ``order_index``, so re-running the
        seed never duplicates or reorders what is already stored.

        Returns:
            ``(buckets_created, questions_created)``
        """
        buckets_created = 0
        questions_created = 0
        for entry in catalog.buckets:
            bucket = await self._repo.find_bucket(db, entry.name, entry.age_band.value)
            if bucket is None:
                bucket = await self._repo.create_bucket(
                    db,
                    name=entry.name,
                    age_band=entry.age_band.value,
                    description=entry.description,
                    purpose=entry.purpose,
                )
                buckets_created += 1
                stored = []
            else:
                logger.debug("Bucket already present: %s (%s)", entry.name, entry.age_band.value)
                stored = await self._repo.list_questions(db, bucket.id)

            known = {q.question_text for q in stored}
            next_index = max((q.order_index for q in stored), default=0) + 1
            for question in entry.questions:
                if question.text in known:
                    continue
                await self._repo.create_question(
                    db,
                    bucket_id=bucket.id,
                    question_text=question.text,
                    question_type=question.type.value,
                    order_index=next_index,
                    response_options=question.options,
                    section=question.section,
                    is_required=question.required,
                )
                known.add(question.text)
                next_index += 1
                questions_created += 1

        logger.info(
            "Catalog %s seeded: %d bucket(s), %d question(s) created",
            catalog.version, buckets_created, questions_created,
        )
        return buckets_created, questions_created
