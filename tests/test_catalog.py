"""Catalog tests — YAML loading, canonical ordering, and seeding."""

import uuid

import pytest
from pydantic import ValidationError

from umoja_db.models.enums import AgeBand
from umoja_assessment.catalog import (
    CatalogReader,
    bucket_sort_key,
    load_catalog,
    parse_age_band,
)
from umoja_assessment.constants import BUCKET_ORDER
from umoja_assessment.errors import InvalidInputError, NotFoundError


@pytest.fixture
def reader(assessment_repo):
    return CatalogReader(assessment_repo)


# =====================================================================
# YAML loading
# =====================================================================


class TestLoadCatalog:

    def test_bundled_catalog_loads(self):
        catalog = load_catalog()
        names = {b.name for b in catalog.buckets if b.age_band is AgeBand.MIDDLE_SCHOOL}
        assert names == set(BUCKET_ORDER), (
            "Bundled catalog should define all four middle-school buckets"
        )
        assert all(b.questions for b in catalog.buckets), "Every bucket needs questions"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_catalog(tmp_path / "nope.yaml")

    def test_unknown_question_type_rejected(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text(
            "buckets:\n"
            "  - name: X\n"
            "    age_band: MS\n"
            "    questions:\n"
            "      - {text: Q, type: essay}\n",
            encoding="utf-8",
        )
        with pytest.raises(ValidationError):
            load_catalog(path)


# =====================================================================
# Ordering
# =====================================================================


class TestOrdering:

    def test_known_buckets_in_canonical_order(self):
        shuffled = list(reversed(BUCKET_ORDER))
        assert sorted(shuffled, key=bucket_sort_key) == BUCKET_ORDER

    def test_unknown_buckets_after_known_alphabetically(self):
        names = ["Zeta", "Alpha", BUCKET_ORDER[2]]
        assert sorted(names, key=bucket_sort_key) == [BUCKET_ORDER[2], "Alpha", "Zeta"]

    def test_parse_age_band(self):
        assert parse_age_band("HS+") is AgeBand.HIGH_SCHOOL_PLUS
        with pytest.raises(InvalidInputError, match="Invalid age band"):
            parse_age_band("college")


# =====================================================================
# Reads and seeding
# =====================================================================


class TestCatalogReader:

    @pytest.mark.asyncio
    async def test_list_buckets_filters_and_orders(self, reader, assessment_repo, mock_db):
        for name in reversed(BUCKET_ORDER):
            assessment_repo.add_bucket(name, "MS")
        assessment_repo.add_bucket(BUCKET_ORDER[0], "K-2")

        buckets = await reader.list_buckets(mock_db, "MS")
        assert [b.name for b in buckets] == BUCKET_ORDER
        assert all(b.age_band == "MS" for b in buckets)

    @pytest.mark.asyncio
    async def test_list_questions_ordered(self, reader, assessment_repo, mock_db):
        bucket = assessment_repo.add_bucket("B")
        assessment_repo.add_question(bucket, "second", order_index=2)
        assessment_repo.add_question(bucket, "first", order_index=1)

        questions = await reader.list_questions(mock_db, bucket.id)
        assert [q.question_text for q in questions] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_list_questions_unknown_bucket(self, reader, mock_db):
        with pytest.raises(NotFoundError):
            await reader.list_questions(mock_db, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, reader, assessment_repo, mock_db):
        catalog = load_catalog()
        expected_questions = sum(len(b.questions) for b in catalog.buckets)

        created = await reader.seed_catalog(mock_db, catalog)
        assert created == (len(catalog.buckets), expected_questions)

        again = await reader.seed_catalog(mock_db, catalog)
        assert again == (0, 0), "Re-seeding must not duplicate buckets or questions"
        assert len(assessment_repo.questions) == expected_questions

    @pytest.mark.asyncio
    async def test_seed_numbers_questions_from_one(self, reader, assessment_repo, mock_db):
        await reader.seed_catalog(mock_db, load_catalog())
        bucket = next(iter(assessment_repo.buckets.values()))
        questions = await assessment_repo.list_questions(mock_db, bucket.id)
        assert [q.order_index for q in questions] == list(range(1, len(questions) + 1))

    @pytest.mark.asyncio
    async def test_seed_fills_existing_bucket(self, reader, assessment_repo, mock_db):
        catalog = load_catalog()
        entry = catalog.buckets[0]
        bucket = assessment_repo.add_bucket(entry.name, entry.age_band.value)
        first = entry.questions[0]
        assessment_repo.add_question(
            bucket, first.text, first.type.value, order_index=1,
        )

        created_buckets, _ = await reader.seed_catalog(mock_db, catalog)

        assert created_buckets == len(catalog.buckets) - 1
        stored = await assessment_repo.list_questions(mock_db, bucket.id)
        assert [q.question_text for q in stored] == [q.text for q in entry.questions], (
            "Missing questions should be appended to the existing bucket"
        )
        assert [q.order_index for q in stored] == list(range(1, len(stored) + 1))
