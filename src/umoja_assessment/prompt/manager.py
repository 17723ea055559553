"""PromptManager — Jinja2-based prompt renderer for the profile analysis.

Loads templates from the ``template/`` directory.  ``system.jinja2`` sets
the analyst role; ``analysis.jinja2`` embeds the answer transcript and the
JSON structure the model has to return.
"""

from __future__ import annotations

import json
from pathlib import Path

import jinja2

from umoja_assessment.constants import TRAIT_FULL_MARK, TRAIT_NAMES

SYSTEM_TEMPLATE = "system.jinja2"
ANALYSIS_TEMPLATE = "analysis.jinja2"


class PromptManager:
    """Jinja2-based prompt renderer.

    Args:
        template_dir: optional override for the template directory.
            Defaults to ``template/`` sibling of this module.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent / "template"
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
        )
        self._env.filters["tojson"] = lambda v: json.dumps(v, ensure_ascii=False)

    def render(self, template_name: str, **context) -> str:
        """Render a named template with arbitrary context."""
        template = self._env.get_template(template_name)
        return template.render(**context)

    def render_system(self, audience: str = "middle school student") -> str:
        return self.render(SYSTEM_TEMPLATE, audience=audience)

    def render_analysis(self, transcript: list[str]) -> str:
        """User prompt: one transcript line per answer, then the schema."""
        return self.render(
            ANALYSIS_TEMPLATE,
            transcript=transcript,
            traits=TRAIT_NAMES,
            full_mark=TRAIT_FULL_MARK,
        )
