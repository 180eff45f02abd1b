"""Typed progress events emitted by the generation orchestrator.

Every event is ``{"type": <kind>, "data": {...}}`` on the wire. The set of
kinds is closed: ``StreamEvent`` is a discriminated union and
``parse_event`` rejects anything else.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from sitesmith.generation.models import DirectoryNode, FileDescriptor, GeneratedFile, Language


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

class MessageData(BaseModel):
    message: str


class StructureData(BaseModel):
    analysis: str
    files: list[FileDescriptor]
    tree: DirectoryNode


class FileCodeData(BaseModel):
    path: str
    code: str
    language: Language


class ErrorData(BaseModel):
    """``path`` is set for file-scoped errors; session errors leave it empty."""
    message: str
    path: Optional[str] = None


class EmptyData(BaseModel):
    pass


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

class StartEvent(BaseModel):
    type: Literal["start"] = "start"
    data: MessageData


class ProgressEvent(BaseModel):
    type: Literal["progress"] = "progress"
    data: MessageData


class AnalysisEvent(BaseModel):
    type: Literal["analysis"] = "analysis"
    data: MessageData


class StructureEvent(BaseModel):
    type: Literal["structure"] = "structure"
    data: StructureData


class CodeEvent(BaseModel):
    type: Literal["code"] = "code"
    data: FileCodeData

    def to_file(self) -> GeneratedFile:
        return GeneratedFile(**self.data.model_dump())


class UpdateEvent(BaseModel):
    type: Literal["update"] = "update"
    data: FileCodeData

    def to_file(self) -> GeneratedFile:
        return GeneratedFile(**self.data.model_dump())


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    data: ErrorData

    @property
    def is_file_scoped(self) -> bool:
        return self.data.path is not None


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    data: EmptyData = Field(default_factory=EmptyData)


StreamEvent = Annotated[
    Union[
        StartEvent,
        ProgressEvent,
        AnalysisEvent,
        StructureEvent,
        CodeEvent,
        UpdateEvent,
        ErrorEvent,
        CompleteEvent,
    ],
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(StreamEvent)


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------

def start(message: str) -> StartEvent:
    return StartEvent(data=MessageData(message=message))


def progress(message: str) -> ProgressEvent:
    return ProgressEvent(data=MessageData(message=message))


def analysis(message: str) -> AnalysisEvent:
    return AnalysisEvent(data=MessageData(message=message))


def structure(
    analysis_text: str, files: list[FileDescriptor], tree: DirectoryNode
) -> StructureEvent:
    return StructureEvent(data=StructureData(analysis=analysis_text, files=files, tree=tree))


def code(file: GeneratedFile) -> CodeEvent:
    return CodeEvent(data=FileCodeData(path=file.path, code=file.code, language=file.language))


def update(file: GeneratedFile) -> UpdateEvent:
    return UpdateEvent(data=FileCodeData(path=file.path, code=file.code, language=file.language))


def error(message: str, path: str | None = None) -> ErrorEvent:
    return ErrorEvent(data=ErrorData(message=message, path=path))


def complete() -> CompleteEvent:
    return CompleteEvent()


# ---------------------------------------------------------------------------
# (De)serialisation
# ---------------------------------------------------------------------------

def event_to_json(event: BaseModel) -> str:
    """Serialise an event compactly, omitting unset optional fields."""
    return event.model_dump_json(exclude_none=True)


def parse_event(payload: str | bytes | dict[str, Any]) -> StreamEvent:
    """Validate a JSON document (or decoded dict) as one of the known events.

    Raises:
        pydantic.ValidationError: If the payload is not a known event.
    """
    if isinstance(payload, dict):
        return _EVENT_ADAPTER.validate_python(payload)
    return _EVENT_ADAPTER.validate_json(payload)


def is_terminal(event: BaseModel) -> bool:
    """``complete`` and session-level ``error`` events end a stream."""
    if isinstance(event, CompleteEvent):
        return True
    return isinstance(event, ErrorEvent) and not event.is_file_scoped
