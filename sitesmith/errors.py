"""Exception hierarchy shared across sitesmith.

Every error raised on purpose by the package derives from
``SitesmithError`` so that the orchestrator and the HTTP layer can convert
them into stream events or status codes at a single boundary.
"""

from __future__ import annotations


class SitesmithError(Exception):
    """Base class for all sitesmith errors."""


class TransportError(SitesmithError):
    """The completion endpoint was unreachable or answered with a failure."""


class MalformedStructureError(SitesmithError):
    """No JSON object could be recovered from an LLM response.

    Attributes:
        raw_text: The untouched model output, kept for diagnostics.
    """

    def __init__(self, message: str, raw_text: str = "") -> None:
        self.raw_text = raw_text
        super().__init__(message)


class InvalidStructureError(SitesmithError):
    """The model returned JSON that does not describe a directory tree."""


class CodeGenerationError(SitesmithError):
    """Code generation for a single file failed.

    Attributes:
        path: The file whose generation failed.
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"Failed to generate code for {path}: {message}")


class PreviewError(SitesmithError):
    """A preview workspace could not be created from the given files."""


class WorkspaceNotFoundError(PreviewError):
    """The requested preview workspace does not exist or has expired."""

    def __init__(self, workspace_id: str) -> None:
        self.workspace_id = workspace_id
        super().__init__(f"Workspace not found: {workspace_id}")
