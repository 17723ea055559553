"""AnalysisService — generates and caches a student's personality profile.

Flow::

    cache hit ──────────────────────────────────────────► return cached row
    cache miss ─► lock(user) ─► re-check ─► transcript ─► LLM ─► validate
                                   │                                  │
                                   └─ hit (another request won) ◄─┐   ▼
                                                                  └ upsert

The per-user advisory lock plus the second lookup make concurrent first
requests produce exactly one LLM call; the keyed upsert keeps a single row
per user regardless.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from umoja_db.repository import AnalysisRepository, AssessmentRepository

from umoja_assessment.errors import NotFoundError, UpstreamError
from umoja_assessment.interfaces import ProfileAnalyzer
from umoja_assessment.models.analysis import AnalysisProfile, AnalysisResult
from umoja_assessment.models.session import (
    NumericValue,
    StructuredValue,
    TextValue,
    value_from_row,
)
from umoja_assessment.prompt import PromptManager

logger = logging.getLogger(__name__)


def format_answer(value: TextValue | NumericValue | StructuredValue) -> str:
    """Render a response value the way it appears in the transcript."""
    if isinstance(value, StructuredValue):
        return json.dumps(value.data, ensure_ascii=False, separators=(",", ":"))
    if isinstance(value, NumericValue):
        number = value.number
        if float(number).is_integer():
            return str(int(number))
        return str(number)
    return value.text


def transcript_line(bucket_name: str, question_text: str, answer: str) -> str:
    return (
        f'In bucket "{bucket_name}", to question "{question_text}", '
        f'the user answered: "{answer}"'
    )


class AnalysisService:
    """Cache-first profile analysis.

    Args:
        analyzer: backend that turns the prompts into a JSON object.
        prompts: prompt renderer; a default ``PromptManager`` when omitted.
    """

    def __init__(
        self,
        analyzer: ProfileAnalyzer,
        *,
        prompts: PromptManager | None = None,
    ) -> None:
        self._analyzer = analyzer
        self._prompts = prompts or PromptManager()
        self._results = AnalysisRepository()
        self._assessments = AssessmentRepository()

    async def get_cached(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> AnalysisResult | None:
        row = await self._results.get_by_user(db, user_id)
        return AnalysisResult.model_validate(row) if row is not None else None

    async def get_or_create_analysis(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> AnalysisResult:
        """Return the cached analysis, generating it on the first call.

        Raises:
            NotFoundError: the user has not answered anything yet
            UpstreamError: the LLM failed or returned an unusable object
        """
        cached = await self.get_cached(db, user_id)
        if cached is not None:
            logger.info("Analysis cache hit: user=%s", user_id)
            return cached

        await self._results.lock_user(db, user_id)
        cached = await self.get_cached(db, user_id)
        if cached is not None:
            logger.info("Analysis generated concurrently, using it: user=%s", user_id)
            return cached

        logger.info("Analysis cache miss: user=%s", user_id)
        transcript = await self.build_transcript(db, user_id)
        if not transcript:
            raise NotFoundError("No assessment responses found for this user.")

        raw = await self._analyzer.analyze(
            self._prompts.render_system(),
            self._prompts.render_analysis(transcript),
        )
        profile = self._validate(raw)

        row = await self._results.upsert(db, user_id, profile.to_columns())
        logger.info(
            "Analysis stored: user=%s responses=%d", user_id, len(transcript),
        )
        return AnalysisResult.model_validate(row)

    async def build_transcript(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> list[str]:
        """One line per stored response, in the order they were given."""
        rows = await self._assessments.list_user_responses(db, user_id)
        lines = []
        for row in rows:
            question = row.question
            bucket_name = question.bucket.name if question.bucket else ""
            lines.append(transcript_line(
                bucket_name, question.question_text, format_answer(value_from_row(row)),
            ))
        return lines

    @staticmethod
    def _validate(raw: dict[str, Any]) -> AnalysisProfile:
        try:
            return AnalysisProfile.model_validate(raw)
        except ValidationError as exc:
            logger.error("Analysis reply failed validation: %s", exc)
            raise UpstreamError(
                "Model reply is missing required profile fields",
                details=str(exc),
            ) from exc
