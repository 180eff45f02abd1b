"""Generation orchestrator.

Drives the two session state machines and yields one typed event per
transition:

Initial generation::

    START -> STRUCTURE_REQUESTED -> STRUCTURE_READY -> (GENERATING_FILE)* -> COMPLETE

Update::

    START -> ANALYZING -> (FILES_IDENTIFIED | NO_FILES) -> (UPDATING_FILE)* -> COMPLETE

``ERROR`` is reachable from every non-terminal state. Files are generated
strictly one at a time; completion calls are the only suspension points.
A failure for one file produces a file-scoped ``error`` event and the
session moves on to the next file.

Usage::

    orchestrator = GenerationOrchestrator(config, client)
    async for event in orchestrator.generate("todo app", "none"):
        ...
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Mapping
from enum import Enum

from sitesmith.completion_client import CompletionClient, create_client
from sitesmith.config import Config
from sitesmith.errors import CodeGenerationError, SitesmithError
from sitesmith.generation import events
from sitesmith.generation.analyzer import ChangeAnalyzer
from sitesmith.generation.codegen import FileCodeGenerator
from sitesmith.generation.events import StreamEvent
from sitesmith.generation.flattener import flatten
from sitesmith.generation.models import FileDescriptor, GeneratedFile, ProjectPlan
from sitesmith.generation.planner import StructurePlanner
from sitesmith.generation.prompts import PromptRenderer
from sitesmith.utils import console, format_duration, strip_code_fences


class SessionPhase(str, Enum):
    """States of both session state machines."""
    START = "start"
    STRUCTURE_REQUESTED = "structure_requested"
    STRUCTURE_READY = "structure_ready"
    GENERATING_FILE = "generating_file"
    ANALYZING = "analyzing"
    FILES_IDENTIFIED = "files_identified"
    NO_FILES = "no_files"
    UPDATING_FILE = "updating_file"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_PHASES = frozenset({SessionPhase.COMPLETE, SessionPhase.ERROR, SessionPhase.NO_FILES})

NO_FILES_MESSAGE = (
    "No valid files found to implement the requested changes. "
    "Please check if you need to create new files first."
)
CANCELLED_MESSAGE = "Generation cancelled before all files were processed."


class GenerationOrchestrator:
    """Runs one generation or update session.

    An orchestrator owns the state of a single session, so build a new one
    per request. Collaborators are injectable for tests; by default they are
    built from ``config`` around a single completion client.

    Attributes:
        config: Explicit configuration for this session.
        phase: Current state of the session's state machine.
        history: Every phase entered, in order.
    """

    def __init__(
        self,
        config: Config,
        client: CompletionClient | None = None,
        *,
        planner: StructurePlanner | None = None,
        generator: FileCodeGenerator | None = None,
        analyzer: ChangeAnalyzer | None = None,
    ) -> None:
        self.config = config
        client = client or create_client(config.llm)
        prompts = PromptRenderer()
        self.planner = planner or StructurePlanner(client, prompts)
        self.generator = generator or FileCodeGenerator(client, prompts)
        self.analyzer = analyzer or ChangeAnalyzer(client, prompts)
        self.phase = SessionPhase.START
        self.history: list[SessionPhase] = []
        self._started = False

    # ------------------------------------------------------------------
    # State handling
    # ------------------------------------------------------------------

    def _begin(self) -> None:
        if self._started:
            raise RuntimeError("An orchestrator runs a single session; create a new one.")
        self._started = True
        self._transition(SessionPhase.START)

    def _transition(self, phase: SessionPhase, detail: str = "") -> None:
        if self.history and self.phase in TERMINAL_PHASES:
            raise RuntimeError(f"Session already ended in {self.phase.value}")
        self.phase = phase
        self.history.append(phase)
        suffix = f" {detail}" if detail else ""
        console.print(f"  [dim]-> {phase.value}{suffix}[/dim]")

    def _fail(self, message: str) -> StreamEvent:
        self._transition(SessionPhase.ERROR)
        console.print(f"  [red]{message}[/red]")
        return events.error(message)

    @staticmethod
    def _cancelled(cancel: asyncio.Event | None) -> bool:
        return cancel is not None and cancel.is_set()

    # ------------------------------------------------------------------
    # Initial generation
    # ------------------------------------------------------------------

    async def generate(
        self,
        user_prompt: str,
        platform: str,
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Plan a project and generate every file, yielding events as it goes."""
        self._begin()
        started = time.monotonic()
        yield events.start(f"Starting new {platform} project generation...")

        try:
            yield events.progress("Analyzing requirements and creating project structure...")
            self._transition(SessionPhase.STRUCTURE_REQUESTED)
            try:
                plan = await self.planner.plan_structure(user_prompt, platform)
            except SitesmithError as exc:
                yield self._fail(f"Failed to generate project structure: {exc}")
                return

            files = flatten(plan.tree)
            self._transition(SessionPhase.STRUCTURE_READY, f"({len(files)} files)")
            yield events.structure(plan.analysis, files, plan.tree)
            yield events.progress("Project structure created. Generating code for each file...")

            async for event in self._generate_files(user_prompt, platform, plan, files, cancel):
                yield event
            if self.phase is SessionPhase.ERROR:
                return

            yield events.progress("All files generated successfully! Your project is ready.")
            self._transition(SessionPhase.COMPLETE, format_duration(time.monotonic() - started))
            yield events.complete()
        except Exception as exc:  # noqa: BLE001
            yield self._fail(f"Project generation failed: {exc}")

    async def _generate_files(
        self,
        user_prompt: str,
        platform: str,
        plan: ProjectPlan,
        files: list[FileDescriptor],
        cancel: asyncio.Event | None,
    ) -> AsyncIterator[StreamEvent]:
        limit = self.config.generation.max_files
        selected = files[:limit]
        current_group: str | None = None

        for index, file in enumerate(selected, start=1):
            if self._cancelled(cancel):
                yield self._fail(CANCELLED_MESSAGE)
                return

            if file.group != current_group:
                current_group = file.group
                yield events.progress(f"Generating {current_group or 'root'} files...")

            self._transition(SessionPhase.GENERATING_FILE, f"{file.path} ({index}/{len(selected)})")
            try:
                raw = await self.generator.generate_file_code(
                    user_prompt, platform, file, plan.analysis
                )
            except CodeGenerationError as exc:
                console.print(f"  [yellow]{exc}[/yellow]")
                yield events.error(str(exc), path=file.path)
                continue

            yield events.code(GeneratedFile.for_path(file.path, strip_code_fences(raw)))

        skipped = len(files) - len(selected)
        if skipped > 0:
            yield events.progress(
                f"Reached the limit of {limit} files per session; {skipped} files were not generated."
            )

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update(
        self,
        user_prompt: str,
        previous_prompt: str,
        platform: str,
        files: Mapping[str, GeneratedFile],
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Regenerate only the files the new request affects.

        An ``update`` event is emitted only when a file's new code differs
        from the stored code.
        """
        self._begin()
        started = time.monotonic()

        try:
            self._transition(SessionPhase.ANALYZING)
            try:
                to_update = await self.analyzer.analyze_changes(
                    user_prompt, previous_prompt, list(files), platform
                )
            except SitesmithError as exc:
                yield self._fail(f"Failed to analyze requested changes: {exc}")
                return

            if not to_update:
                self._transition(SessionPhase.NO_FILES)
                yield events.analysis(NO_FILES_MESSAGE)
                return

            self._transition(SessionPhase.FILES_IDENTIFIED, f"({len(to_update)} files)")
            yield events.analysis(f"Analysis complete: {len(to_update)} files will be updated")

            for path in to_update:
                if self._cancelled(cancel):
                    yield self._fail(CANCELLED_MESSAGE)
                    return

                stored = files[path]
                self._transition(SessionPhase.UPDATING_FILE, path)
                try:
                    raw = await self.generator.generate_file_code(
                        user_prompt,
                        platform,
                        FileDescriptor(path=path),
                        previous_prompt,
                        existing_code=stored.code,
                    )
                except CodeGenerationError as exc:
                    console.print(f"  [yellow]{exc}[/yellow]")
                    yield events.error(str(exc), path=path)
                    continue

                new_code = strip_code_fences(raw)
                if new_code == stored.code:
                    console.print(f"  [dim]No changes needed in {path}[/dim]")
                    continue
                yield events.update(GeneratedFile.for_path(path, new_code))

            self._transition(SessionPhase.COMPLETE, format_duration(time.monotonic() - started))
            yield events.complete()
        except Exception as exc:  # noqa: BLE001
            yield self._fail(f"Project update failed: {exc}")
