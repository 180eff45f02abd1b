"""Recover a JSON object from free-form model output.

Models asked for "JSON only" still wrap it in Markdown fences, add a
sentence before or after, or leave trailing commas. ``normalize`` tries a
fixed sequence of increasingly aggressive repairs and returns the first
object that parses.
"""

from __future__ import annotations

import json
import re
from typing import Any

from sitesmith.errors import MalformedStructureError

_FENCED_BLOCK_RE = re.compile(r"```[\w.+-]*[ \t]*\n?([\s\S]*?)\n?[ \t]*```")
_LEADING_FENCE_RE = re.compile(r"^\s*```[\w.+-]*")
_TRAILING_FENCE_RE = re.compile(r"```\s*$")
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def _loads_object(text: str) -> dict[str, Any] | None:
    """Parse ``text`` and return it only if it is a JSON object."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _strip_fences_and_commas(text: str) -> str:
    cleaned = _LEADING_FENCE_RE.sub("", text.strip())
    cleaned = _TRAILING_FENCE_RE.sub("", cleaned)
    cleaned = _TRAILING_COMMA_RE.sub(r"\1", cleaned)
    return cleaned.strip()


def normalize(raw_text: str) -> dict[str, Any]:
    """Extract the JSON object contained in ``raw_text``.

    Strategies, first success wins:

    1. the interior of a fenced code block (any or no language tag);
    2. the whole trimmed text;
    3. the text with leading/trailing fences and trailing commas removed;
    4. the greedy ``{...}`` span of the cleaned text.

    Raises:
        MalformedStructureError: If none of the strategies yields an object.
    """
    fenced = _FENCED_BLOCK_RE.search(raw_text)
    if fenced:
        data = _loads_object(fenced.group(1))
        if data is not None:
            return data

    data = _loads_object(raw_text.strip())
    if data is not None:
        return data

    cleaned = _strip_fences_and_commas(raw_text)
    data = _loads_object(cleaned)
    if data is not None:
        return data

    match = _OBJECT_RE.search(cleaned)
    if match:
        data = _loads_object(match.group(0))
        if data is not None:
            return data

    preview = raw_text.strip()[:200]
    raise MalformedStructureError(
        f"Could not parse a JSON object from the model response: {preview!r}",
        raw_text=raw_text,
    )
