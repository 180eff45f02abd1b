"""sitesmith generation pipeline.

Turns a chat request into a project: the model proposes a file tree, the
tree is flattened into an ordered file list, and every file is generated
with its own prompt. Update requests regenerate only the files the model
says are affected. Progress is reported as typed events.

Usage::

    from sitesmith.generation import GenerationOrchestrator

    orchestrator = GenerationOrchestrator(config, client)
    async for event in orchestrator.generate("a todo app", "none"):
        print(event.type)
"""

from sitesmith.generation.analyzer import ChangeAnalyzer, parse_changed_paths
from sitesmith.generation.codegen import FileCodeGenerator
from sitesmith.generation.events import StreamEvent, event_to_json, is_terminal, parse_event
from sitesmith.generation.flattener import flatten
from sitesmith.generation.models import (
    DirectoryNode,
    FileDescriptor,
    GeneratedFile,
    Language,
    NodeType,
    ProjectPlan,
)
from sitesmith.generation.normalizer import normalize
from sitesmith.generation.orchestrator import GenerationOrchestrator, SessionPhase
from sitesmith.generation.planner import StructurePlanner

__all__ = [
    "ChangeAnalyzer",
    "DirectoryNode",
    "FileCodeGenerator",
    "FileDescriptor",
    "GeneratedFile",
    "GenerationOrchestrator",
    "Language",
    "NodeType",
    "ProjectPlan",
    "SessionPhase",
    "StreamEvent",
    "StructurePlanner",
    "event_to_json",
    "flatten",
    "is_terminal",
    "normalize",
    "parse_changed_paths",
    "parse_event",
]
