"""Shared pytest fixtures for the sitesmith test suite.

Provides reusable fixtures for:
- A scripted fake completion client (no network)
- Configurations pointing previews at a temporary directory
- Sample model answers for the static platform
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Union

import pytest

from sitesmith.completion_client import CompletionClient
from sitesmith.config import Config, PreviewConfig
from sitesmith.errors import TransportError

Reply = Union[str, Exception, Callable[[str], str]]


# ---------------------------------------------------------------------------
# Fake completion client
# ---------------------------------------------------------------------------


class FakeCompletionClient(CompletionClient):
    """Completion client that answers from a script instead of the network.

    ``replies`` is consumed in order, one entry per ``complete`` call. An
    entry may be a string, an exception instance (raised), or a callable
    taking the prompt and returning the answer. When the script runs out,
    ``default`` answers (a string or a callable).
    """

    provider = "Fake"

    def __init__(
        self,
        replies: list[Reply] | None = None,
        default: str | Callable[[str], str] | None = None,
    ) -> None:
        super().__init__("http://fake.invalid", "fake-model", timeout=10)
        self.replies: list[Reply] = list(replies or [])
        self.default = default
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply: Reply | None = self.replies.pop(0) if self.replies else self.default
        if reply is None:
            raise TransportError("Fake client has no scripted reply left")
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(prompt)
        return reply


@pytest.fixture
def fake_client() -> FakeCompletionClient:
    """An empty fake client; tests append to ``replies``."""
    return FakeCompletionClient()


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Default configuration with previews written under ``tmp_path``."""
    return Config(preview=PreviewConfig(root_dir=tmp_path / "previews"))


# ---------------------------------------------------------------------------
# Sample model answers
# ---------------------------------------------------------------------------


@pytest.fixture
def empty_structure_reply() -> str:
    """A structure answer that adds nothing to the static skeleton."""
    return json.dumps({
        "analysis": "A simple todo list with add and remove.",
        "structure": {"type": "directory", "name": "root", "children": []},
    })


@pytest.fixture
def static_files() -> dict[str, str]:
    """Generated sources of a tiny static project."""
    return {
        "src/index.html": (
            "<!DOCTYPE html>\n<html>\n<head>\n"
            '  <link rel="stylesheet" href="style.css">\n'
            "</head>\n<body>\n  <h1>Todo</h1>\n"
            '  <script src="script.js"></script>\n'
            "</body>\n</html>"
        ),
        "src/style.css": "h1 { color: red; }",
        "src/script.js": "console.log('todo');",
    }


@pytest.fixture
def make_client() -> type[FakeCompletionClient]:
    """The fake client class, for tests that script replies up front."""
    return FakeCompletionClient
