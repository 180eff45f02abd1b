"""Jinja2 prompt rendering for the generation pipeline.

All prompts sent to the completion client live as ``.j2`` templates under
``sitesmith/generation/templates/``. ``PromptRenderer`` loads them and
exposes one method per prompt kind, so callers never assemble prompt text
by hand.

File prompts for the static-site platform are specialised per file: the
``STATIC_FILE_TEMPLATES`` table maps an exact project-relative path to its
own template, and every other file uses the generic template.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from jinja2 import Environment, FileSystemLoader, select_autoescape

from sitesmith.generation.models import FileDescriptor

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

STATIC_PLATFORM = "none"

STATIC_FILE_TEMPLATES: dict[str, str] = {
    "src/index.html": "static/index_html.j2",
    "src/style.css": "static/style_css.j2",
    "src/script.js": "static/script_js.j2",
}


def specialized_template(platform: str, file: FileDescriptor) -> str | None:
    """Return the dedicated template for ``file``, if the platform has one.

    The table is consulted with the full path first, then with the path
    relative to the project root.
    """
    if platform != STATIC_PLATFORM:
        return None
    return STATIC_FILE_TEMPLATES.get(file.path) or STATIC_FILE_TEMPLATES.get(file.relative_path)


class PromptRenderer:
    """Renders the prompt templates with per-call context."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context."""
        template = self.env.get_template(template_path)
        return template.render(**context).strip()

    # -- Prompt kinds -------------------------------------------------------

    def structure_prompt(self, user_prompt: str, platform: str, skeleton: dict[str, Any]) -> str:
        """Prompt asking for ``{"analysis", "structure"}`` shaped like ``skeleton``."""
        return self.render(
            "structure.j2",
            {
                "prompt": user_prompt,
                "platform": platform,
                "skeleton_json": json.dumps(skeleton, indent=2),
            },
        )

    def file_prompt(
        self,
        user_prompt: str,
        platform: str,
        file: FileDescriptor,
        analysis: str,
    ) -> str:
        """Prompt asking for the complete source of ``file``."""
        template = specialized_template(platform, file) or "file_generic.j2"
        return self.render(
            template,
            {
                "prompt": user_prompt,
                "platform": platform,
                "path": file.path,
                "purpose": file.purpose,
                "analysis": analysis,
            },
        )

    def update_prompt(
        self,
        user_prompt: str,
        platform: str,
        file: FileDescriptor,
        existing_code: str,
        analysis: str = "",
    ) -> str:
        """Prompt asking for an updated version of ``existing_code``."""
        return self.render(
            "file_update.j2",
            {
                "prompt": user_prompt,
                "platform": platform,
                "path": file.path,
                "purpose": file.purpose,
                "analysis": analysis,
                "existing_code": existing_code,
            },
        )

    def change_analysis_prompt(
        self,
        new_prompt: str,
        previous_prompt: str,
        platform: str,
        paths: Iterable[str],
    ) -> str:
        """Prompt asking which of ``paths`` must change, one per line."""
        return self.render(
            "change_analysis.j2",
            {
                "prompt": new_prompt,
                "previous_prompt": previous_prompt,
                "platform": platform,
                "paths": list(paths),
            },
        )
