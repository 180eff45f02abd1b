"""Unit tests for the generation orchestrator (sitesmith.generation.orchestrator).

Tests cover:
- Initial generation: event order, structure before code, grouping progress
- Per-file failures produce file-scoped errors and the session continues
- Structure failures and unexpected exceptions end the session with an error
- File cap and cancellation
- Update flow: path filtering, unchanged files, no-files outcome
- One session per orchestrator
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from sitesmith.errors import TransportError
from sitesmith.generation.events import (
    AnalysisEvent,
    CodeEvent,
    CompleteEvent,
    ErrorEvent,
    ProgressEvent,
    StartEvent,
    StructureEvent,
    UpdateEvent,
    is_terminal,
)
from sitesmith.generation.models import GeneratedFile, Language
from sitesmith.generation.orchestrator import (
    NO_FILES_MESSAGE,
    GenerationOrchestrator,
    SessionPhase,
)


async def collect(events) -> list:
    return [event async for event in events]


def code_for(prompt: str) -> str:
    """Answer a file prompt with a fenced snippet naming the file."""
    for line in prompt.splitlines():
        if line.startswith("File: "):
            return f"```\n// {line[len('File: '):]}\n```"
    return "// unknown"


def structure_reply(*children: dict) -> str:
    return json.dumps({
        "analysis": "Todo list",
        "structure": {"type": "directory", "name": "root", "children": list(children)},
    })


# ---------------------------------------------------------------------------
# Initial generation
# ---------------------------------------------------------------------------


class TestGenerate:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_static_todo_app(self, config, make_client):
        client = make_client([structure_reply()], default=code_for)
        orchestrator = GenerationOrchestrator(config, client)

        events = await collect(orchestrator.generate("todo app", "none"))

        assert [type(e) for e in events] == [
            StartEvent,
            ProgressEvent,
            StructureEvent,
            ProgressEvent,
            ProgressEvent,
            CodeEvent,
            CodeEvent,
            CodeEvent,
            ProgressEvent,
            CompleteEvent,
        ]
        structure = events[2]
        assert [f.relative_path for f in structure.data.files] == [
            "src/index.html",
            "src/style.css",
            "src/script.js",
        ]
        assert structure.data.analysis == "Todo list"
        assert orchestrator.phase is SessionPhase.COMPLETE

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_code_events_are_fence_stripped(self, config, make_client):
        client = make_client([structure_reply()], default=code_for)
        orchestrator = GenerationOrchestrator(config, client)

        events = await collect(orchestrator.generate("todo app", "none"))
        codes = [e for e in events if isinstance(e, CodeEvent)]

        assert codes[0].data.path == "root/src/index.html"
        assert codes[0].data.code == "// root/src/index.html"
        assert codes[0].data.language is Language.HTML
        assert codes[1].data.language is Language.CSS
        assert codes[2].data.language is Language.JAVASCRIPT

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_structure_precedes_code_and_complete_is_last(self, config, make_client):
        client = make_client([structure_reply()], default=code_for)
        events = await collect(GenerationOrchestrator(config, client).generate("app", "none"))

        kinds = [e.type for e in events]
        assert kinds.index("structure") < kinds.index("code")
        assert kinds[-1] == "complete"
        assert sum(is_terminal(e) for e in events) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_progress_emitted_when_group_changes(self, config, make_client):
        reply = structure_reply(
            {"type": "file", "name": "README.md", "purpose": "Docs"},
            {"type": "directory", "name": "assets", "children": [
                {"type": "file", "name": "logo.svg", "purpose": "Logo"},
            ]},
        )
        client = make_client([reply], default=code_for)
        events = await collect(GenerationOrchestrator(config, client).generate("app", "none"))

        groups = [
            e.data.message
            for e in events
            if isinstance(e, ProgressEvent) and e.data.message.startswith("Generating ")
        ]
        assert groups == [
            "Generating src files...",
            "Generating root files...",
            "Generating assets files...",
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_static_files_use_specialized_prompts(self, config, make_client):
        client = make_client([structure_reply()], default=code_for)
        await collect(GenerationOrchestrator(config, client).generate("todo app", "none"))

        assert "Includes Tailwind CSS via CDN" in client.prompts[1]
        assert len(client.prompts) == 4

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_file_failure_is_scoped_and_session_continues(self, config, make_client):
        def answer(prompt: str) -> str:
            if "File: root/src/script.js" in prompt:
                raise TransportError("Gemini returned HTTP 500: boom")
            return code_for(prompt)

        reply = structure_reply({"type": "file", "name": "README.md", "purpose": "Docs"})
        client = make_client([reply], default=answer)
        orchestrator = GenerationOrchestrator(config, client)

        events = await collect(orchestrator.generate("app", "none"))

        errors = [e for e in events if isinstance(e, ErrorEvent)]
        assert len(errors) == 1
        assert errors[0].data.path == "root/src/script.js"
        assert "HTTP 500" in errors[0].data.message
        coded = [e.data.path for e in events if isinstance(e, CodeEvent)]
        assert "root/README.md" in coded
        assert "root/src/script.js" not in coded
        assert isinstance(events[-1], CompleteEvent)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_file_reply_is_file_scoped_error(self, config, make_client):
        client = make_client([structure_reply(), "   ", "b", "c"])
        events = await collect(GenerationOrchestrator(config, client).generate("app", "none"))

        errors = [e for e in events if isinstance(e, ErrorEvent)]
        assert len(errors) == 1
        assert errors[0].is_file_scoped
        assert isinstance(events[-1], CompleteEvent)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_malformed_structure_ends_session(self, config, make_client):
        client = make_client(["I cannot help with that."])
        orchestrator = GenerationOrchestrator(config, client)

        events = await collect(orchestrator.generate("app", "none"))

        assert [type(e) for e in events] == [StartEvent, ProgressEvent, ErrorEvent]
        assert not events[-1].is_file_scoped
        assert "project structure" in events[-1].data.message
        assert orchestrator.phase is SessionPhase.ERROR
        assert len(client.prompts) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_transport_failure_during_planning(self, config, make_client):
        client = make_client([TransportError("Cannot connect to Gemini")])
        events = await collect(GenerationOrchestrator(config, client).generate("app", "none"))

        assert isinstance(events[-1], ErrorEvent)
        assert "Cannot connect" in events[-1].data.message

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_error_event(self, config, make_client, fake_client):
        planner = MagicMock()
        planner.plan_structure = AsyncMock(side_effect=ValueError("kaboom"))
        orchestrator = GenerationOrchestrator(config, fake_client, planner=planner)

        events = await collect(orchestrator.generate("app", "none"))

        assert isinstance(events[-1], ErrorEvent)
        assert "kaboom" in events[-1].data.message
        assert orchestrator.phase is SessionPhase.ERROR

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_file_cap_reports_skipped_files(self, config, make_client):
        config.generation.max_files = 2
        client = make_client([structure_reply()], default=code_for)

        events = await collect(GenerationOrchestrator(config, client).generate("app", "none"))

        assert len([e for e in events if isinstance(e, CodeEvent)]) == 2
        notes = [e.data.message for e in events if isinstance(e, ProgressEvent)]
        assert any("1 files were not generated" in note for note in notes)
        assert isinstance(events[-1], CompleteEvent)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cancellation_stops_before_next_file(self, config, make_client):
        cancel = asyncio.Event()

        def answer(prompt: str) -> str:
            cancel.set()
            return code_for(prompt)

        client = make_client([structure_reply()], default=answer)
        orchestrator = GenerationOrchestrator(config, client)

        events = await collect(orchestrator.generate("app", "none", cancel))

        assert len([e for e in events if isinstance(e, CodeEvent)]) == 1
        assert isinstance(events[-1], ErrorEvent)
        assert "cancelled" in events[-1].data.message
        assert orchestrator.phase is SessionPhase.ERROR

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_orchestrator_runs_one_session(self, config, make_client):
        client = make_client([structure_reply()], default=code_for)
        orchestrator = GenerationOrchestrator(config, client)
        await collect(orchestrator.generate("app", "none"))

        with pytest.raises(RuntimeError):
            await collect(orchestrator.generate("app", "none"))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_phase_history(self, config, make_client):
        client = make_client([structure_reply()], default=code_for)
        orchestrator = GenerationOrchestrator(config, client)
        await collect(orchestrator.generate("app", "none"))

        assert orchestrator.history == [
            SessionPhase.START,
            SessionPhase.STRUCTURE_REQUESTED,
            SessionPhase.STRUCTURE_READY,
            SessionPhase.GENERATING_FILE,
            SessionPhase.GENERATING_FILE,
            SessionPhase.GENERATING_FILE,
            SessionPhase.COMPLETE,
        ]


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


@pytest.fixture
def stored_files() -> dict[str, GeneratedFile]:
    return {
        "src/style.css": GeneratedFile.for_path("src/style.css", "h1 { color: red; }"),
        "src/script.js": GeneratedFile.for_path("src/script.js", "console.log('todo');"),
    }


class TestUpdate:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_only_existing_paths_are_updated(self, config, make_client, stored_files):
        client = make_client([
            "src/style.css\nsrc/missing.js\n",
            "```css\nh1 { color: blue; }\n```",
        ])
        orchestrator = GenerationOrchestrator(config, client)

        events = await collect(
            orchestrator.update("make it blue", "todo app", "none", stored_files)
        )

        assert [type(e) for e in events] == [AnalysisEvent, UpdateEvent, CompleteEvent]
        assert "1 files will be updated" in events[0].data.message
        assert events[1].data.path == "src/style.css"
        assert events[1].data.code == "h1 { color: blue; }"
        assert events[1].data.language is Language.CSS
        assert orchestrator.phase is SessionPhase.COMPLETE

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_prompt_carries_existing_code(self, config, make_client, stored_files):
        client = make_client(["src/style.css", "h1 { color: blue; }"])
        await collect(
            GenerationOrchestrator(config, client).update(
                "make it blue", "todo app", "none", stored_files
            )
        )

        assert "src/script.js" in client.prompts[0]
        assert "h1 { color: red; }" in client.prompts[1]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unchanged_code_emits_no_update(self, config, make_client, stored_files):
        client = make_client(["src/style.css", "```\nh1 { color: red; }\n```"])
        events = await collect(
            GenerationOrchestrator(config, client).update(
                "keep it", "todo app", "none", stored_files
            )
        )

        assert [type(e) for e in events] == [AnalysisEvent, CompleteEvent]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_valid_files_halts_with_analysis(self, config, make_client, stored_files):
        client = make_client(["src/missing.js\nREADME.md"])
        orchestrator = GenerationOrchestrator(config, client)

        events = await collect(
            orchestrator.update("add a page", "todo app", "none", stored_files)
        )

        assert len(events) == 1
        assert isinstance(events[0], AnalysisEvent)
        assert events[0].data.message == NO_FILES_MESSAGE
        assert orchestrator.phase is SessionPhase.NO_FILES
        assert len(client.prompts) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_per_file_failure_continues(self, config, make_client, stored_files):
        client = make_client([
            "src/style.css\nsrc/script.js",
            TransportError("timed out"),
            "console.log('done');",
        ])
        events = await collect(
            GenerationOrchestrator(config, client).update(
                "change both", "todo app", "none", stored_files
            )
        )

        assert [type(e) for e in events] == [
            AnalysisEvent,
            ErrorEvent,
            UpdateEvent,
            CompleteEvent,
        ]
        assert events[1].data.path == "src/style.css"
        assert events[2].data.path == "src/script.js"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_analysis_failure_ends_session(self, config, make_client, stored_files):
        client = make_client([TransportError("Cannot connect to Gemini")])
        orchestrator = GenerationOrchestrator(config, client)

        events = await collect(orchestrator.update("x", "y", "none", stored_files))

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert not events[0].is_file_scoped
        assert orchestrator.phase is SessionPhase.ERROR

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_cancellation(self, config, make_client, stored_files):
        cancel = asyncio.Event()
        cancel.set()
        client = make_client(["src/style.css"])

        events = await collect(
            GenerationOrchestrator(config, client).update("x", "y", "none", stored_files, cancel)
        )

        assert [type(e) for e in events] == [AnalysisEvent, ErrorEvent]
        assert "cancelled" in events[-1].data.message
