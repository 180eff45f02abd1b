"""Pydantic v2 models for the generation pipeline.

Defines the directory tree returned by the structure planner, the flat file
descriptors derived from it, and the generated files that make up a
session's file set.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sitesmith.utils import file_extension


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class NodeType(str, Enum):
    """Discriminator of a ``DirectoryNode``."""
    FILE = "file"
    DIRECTORY = "directory"


class Language(str, Enum):
    """Syntax-highlighting language of a generated file."""
    JAVASCRIPT = "javascript"
    JSX = "jsx"
    TYPESCRIPT = "typescript"
    TSX = "tsx"
    CSS = "css"
    SCSS = "scss"
    HTML = "html"
    JSON = "json"
    MARKDOWN = "markdown"
    PLAINTEXT = "plaintext"

    @classmethod
    def from_path(cls, path: str) -> "Language":
        """Infer the language from the file extension; unknown ones are plaintext."""
        return _EXTENSION_LANGUAGES.get(file_extension(path), cls.PLAINTEXT)


_EXTENSION_LANGUAGES: dict[str, Language] = {
    "js": Language.JAVASCRIPT,
    "jsx": Language.JSX,
    "ts": Language.TYPESCRIPT,
    "tsx": Language.TSX,
    "css": Language.CSS,
    "scss": Language.SCSS,
    "html": Language.HTML,
    "json": Language.JSON,
    "md": Language.MARKDOWN,
}


# ---------------------------------------------------------------------------
# Tree Models
# ---------------------------------------------------------------------------

class DirectoryNode(BaseModel):
    """One node of a project tree.

    A ``file`` node carries a purpose and never has children; a
    ``directory`` node always has a (possibly empty) list of children.
    Model output is accepted leniently: when ``type`` is missing or not one
    of the two literals, a node with a ``children`` list is a directory and
    anything else is a file.
    """
    type: NodeType = Field(..., description="'file' or 'directory'")
    name: str = Field(..., description="Entry name within its parent")
    path: Optional[str] = Field(default=None, description="Path hint supplied by the model")
    purpose: str = Field(default="", description="What the file is for")
    children: Optional[list[DirectoryNode]] = Field(
        default=None, description="Child nodes (directories only)"
    )

    @model_validator(mode="before")
    @classmethod
    def _coerce_node(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        node_type = data.get("type")
        if node_type not in ("file", "directory"):
            node_type = "directory" if isinstance(data.get("children"), list) else "file"
        data["type"] = node_type
        if NodeType(node_type) is NodeType.FILE:
            data.pop("children", None)
        elif data.get("children") is None:
            data["children"] = []
        if data.get("purpose") is None:
            data["purpose"] = ""
        return data

    @property
    def is_file(self) -> bool:
        return self.type is NodeType.FILE

    def to_json_dict(self) -> dict[str, Any]:
        """Serialise without empty optional fields (file nodes lose ``children``)."""
        return self.model_dump(mode="json", exclude_none=True)


class ProjectPlan(BaseModel):
    """The model's analysis plus the merged project tree. Immutable."""
    model_config = ConfigDict(frozen=True)

    analysis: str = Field(default="", description="Model's analysis of the request")
    tree: DirectoryNode = Field(..., description="Merged project tree")


class FileDescriptor(BaseModel):
    """A file to generate, derived by flattening a tree."""
    path: str = Field(..., description="Slash-joined path including the root name")
    purpose: str = Field(default="", description="What the file is for")

    @property
    def segments(self) -> list[str]:
        return self.path.split("/")

    @property
    def relative_path(self) -> str:
        """Path without its leading root segment (``root/src/a.js`` -> ``src/a.js``)."""
        segments = self.segments
        if len(segments) < 2:
            return self.path
        return "/".join(segments[1:])

    @property
    def group(self) -> str:
        """Top-level folder under the root, used to group progress messages.

        Files directly under the root have no folder and yield ``""``.
        """
        segments = self.segments
        return segments[1] if len(segments) > 2 else ""


class GeneratedFile(BaseModel):
    """Source code produced for one path. Keyed by ``path`` in a file set."""
    path: str = Field(default="", description="File path")
    code: str = Field(default="", description="File contents")
    language: Language = Field(default=Language.PLAINTEXT, description="Highlighting language")

    @classmethod
    def for_path(cls, path: str, code: str) -> "GeneratedFile":
        """Build a file whose language is inferred from ``path``."""
        return cls(path=path, code=code, language=Language.from_path(path))


DirectoryNode.model_rebuild()
