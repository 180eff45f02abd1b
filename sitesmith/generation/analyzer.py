"""Change analysis for update requests.

Given the previous and the new request, the model picks which existing
files need editing. Its answer is free text, so every line is cleaned and
checked against the real file set; paths the model invents are dropped,
never turned into new files.
"""

from __future__ import annotations

import re
from collections.abc import Collection

from sitesmith.completion_client import CompletionClient
from sitesmith.generation.prompts import PromptRenderer

_BULLET_RE = re.compile(r"^(?:[-*+]\s+|\d+[.)]\s+)")


def parse_changed_paths(raw_text: str, current_paths: Collection[str]) -> list[str]:
    """Return the lines of ``raw_text`` that name a path in ``current_paths``.

    Lines are trimmed and empty ones dropped; list bullets and surrounding
    backticks or quotes are removed. Order follows the model's answer and a
    path is reported once.
    """
    selected: list[str] = []
    for line in raw_text.splitlines():
        candidate = _BULLET_RE.sub("", line.strip()).strip().strip("`'\"").strip()
        if not candidate:
            continue
        if candidate in current_paths and candidate not in selected:
            selected.append(candidate)
    return selected


class ChangeAnalyzer:
    """Decides which existing files an update request touches."""

    def __init__(self, client: CompletionClient, prompts: PromptRenderer | None = None) -> None:
        self.client = client
        self.prompts = prompts or PromptRenderer()

    async def analyze_changes(
        self,
        new_prompt: str,
        previous_prompt: str,
        current_paths: Collection[str],
        platform: str = "none",
    ) -> list[str]:
        """Ask the model which of ``current_paths`` need modification.

        Raises:
            TransportError: If the completion call fails.
        """
        prompt = self.prompts.change_analysis_prompt(
            new_prompt, previous_prompt, platform, current_paths
        )
        raw_text = await self.client.complete(prompt)
        return parse_changed_paths(raw_text, current_paths)
