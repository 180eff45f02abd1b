"""Client-side session state.

A ``SessionState`` is what a consumer of the event stream keeps between
requests: the current file set keyed by path, the last prompt and the
platform. It is filled in as ``code`` and ``update`` events arrive and is
cleared only when a new generation starts.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from sitesmith.generation.events import (
    AnalysisEvent,
    CodeEvent,
    CompleteEvent,
    ErrorEvent,
    ProgressEvent,
    StartEvent,
    StructureEvent,
    UpdateEvent,
)
from sitesmith.generation.models import GeneratedFile


class SessionState(BaseModel):
    """File set and request history of one browser-side session."""

    files: dict[str, GeneratedFile] = Field(default_factory=dict)
    last_prompt: str = Field(default="", description="Prompt of the most recent request")
    platform: str = Field(default="none")
    initialized: bool = Field(default=False, description="True once a generation has started")
    errors: list[str] = Field(default_factory=list, description="Messages of error events seen")

    def reset(self, prompt: str, platform: str) -> None:
        """Start a new generation: drop every file and remember the request."""
        self.files.clear()
        self.errors.clear()
        self.last_prompt = prompt
        self.platform = platform
        self.initialized = True

    def apply(self, event: BaseModel) -> None:
        """Fold one stream event into the state.

        Raises:
            TypeError: If ``event`` is not a known stream event.
        """
        if isinstance(event, (CodeEvent, UpdateEvent)):
            file = event.to_file()
            self.files[file.path] = file
        elif isinstance(event, ErrorEvent):
            self.errors.append(event.data.message)
        elif isinstance(
            event, (StartEvent, ProgressEvent, AnalysisEvent, StructureEvent, CompleteEvent)
        ):
            return
        else:
            raise TypeError(f"Unknown stream event: {type(event).__name__}")

    def update_request(self, prompt: str) -> dict[str, Any]:
        """Body for ``POST /api/update-code`` describing the current file set.

        The new prompt becomes ``last_prompt`` for the next request.
        """
        body = {
            "userPrompt": prompt,
            "previousPrompt": self.last_prompt,
            "platformTag": self.platform,
            "files": {
                path: {"code": file.code, "language": file.language.value}
                for path, file in self.files.items()
            },
        }
        self.last_prompt = prompt
        return body

    def preview_files(self) -> list[dict[str, str]]:
        """Body entries for ``POST /api/preview``."""
        return [{"path": path, "content": file.code} for path, file in self.files.items()]
