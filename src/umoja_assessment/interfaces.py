"""Abstract interface for the profile-analysis backend.

The SDK depends only on this contract; ``umoja_assessment.llm`` ships the
OpenAI-backed implementation, and tests plug in an in-memory fake.

Typical integration flow::

    analyzer: ProfileAnalyzer = OpenAIProfileAnalyzer(client, model="gpt-4o")
    service = AnalysisService(analyzer)
    result = await service.get_or_create_analysis(db, user_id)
"""

from abc import ABC, abstractmethod
from typing import Any


class ProfileAnalyzer(ABC):
    """Turns a rendered prompt pair into a JSON object.

    Implementations must return the parsed JSON object, or raise
    :class:`~umoja_assessment.errors.UpstreamError` when the backend fails
    or replies with something that is not a JSON object.  Shape validation
    of the object is the caller's job.
    """

    @abstractmethod
    async def analyze(self, system_prompt: str, user_prompt: str) -> dict[str, Any]:
        """Run one analysis request.

        Parameters
        ----------
        system_prompt:
            Role and output-format instructions.
        user_prompt:
            The student's transcript plus the JSON schema to fill.

        Returns
        -------
        dict
            The decoded JSON object from the model reply.
        """
        ...
