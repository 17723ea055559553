"""OpenAI-backed ``ProfileAnalyzer``.

Wraps an injected ``openai.AsyncOpenAI`` client: the server builds one at
startup from ``OPENAI_API_KEY`` and tests pass a fake with the same
``chat.completions.create`` shape.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import openai

from umoja_assessment.constants import DEFAULT_ANALYSIS_MODEL, DEFAULT_LLM_TIMEOUT_SECONDS
from umoja_assessment.errors import UpstreamError
from umoja_assessment.interfaces import ProfileAnalyzer

logger = logging.getLogger(__name__)


class OpenAIProfileAnalyzer(ProfileAnalyzer):
    """JSON-mode chat completion against the OpenAI API.

    Args:
        client: an ``AsyncOpenAI`` (or compatible) client.
        model: chat model name.
        timeout: per-request upper bound in seconds.
    """

    def __init__(
        self,
        client: Any,
        *,
        model: str = DEFAULT_ANALYSIS_MODEL,
        timeout: float = DEFAULT_LLM_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self.model = model
        self.timeout = timeout

    async def analyze(self, system_prompt: str, user_prompt: str) -> dict[str, Any]:
        try:
            completion = await self._client.chat.completions.create(
                model=self.model,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                timeout=self.timeout,
            )
        except openai.OpenAIError as exc:
            logger.error("OpenAI request failed (model=%s): %s", self.model, exc)
            raise UpstreamError("Profile analysis request failed", details=str(exc)) from exc

        raw = completion.choices[0].message.content or ""
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Model reply is not valid JSON: %.200s", raw)
            raise UpstreamError("Model reply is not valid JSON", details=str(exc)) from exc

        if not isinstance(parsed, dict):
            raise UpstreamError(
                "Model reply is not a JSON object",
                details=f"got {type(parsed).__name__}",
            )

        usage = getattr(completion, "usage", None)
        if usage is not None:
            logger.debug(
                "Analysis tokens: prompt=%s completion=%s",
                usage.prompt_tokens, usage.completion_tokens,
            )
        return parsed
