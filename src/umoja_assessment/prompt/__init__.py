"""Prompt rendering for the profile analysis.

Provides ``PromptManager``, a Jinja2-based template engine that renders the
system prompt and the transcript-plus-schema user prompt.
"""

from umoja_assessment.prompt.manager import PromptManager

__all__ = ["PromptManager"]
