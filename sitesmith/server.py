"""HTTP surface of sitesmith.

``create_app`` builds a FastAPI application exposing:

* ``POST /api/generate-project`` -- initial generation, streamed as events
* ``POST /api/update-code``      -- incremental update, streamed as events
* ``POST /api/preview``          -- write a file set to a preview workspace
* ``GET|DELETE /api/preview/{id}``
* ``GET /api/health``
* ``/preview/...``               -- static files of every workspace

Generation endpoints answer with ``text/event-stream``; one ``data:``
frame per orchestrator event. A client disconnect cancels the session
before its next file.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from sitesmith import __version__
from sitesmith.completion_client import CompletionClient, create_client
from sitesmith.config import Config
from sitesmith.errors import PreviewError, WorkspaceNotFoundError
from sitesmith.generation.models import GeneratedFile
from sitesmith.generation.orchestrator import GenerationOrchestrator
from sitesmith.preview.workspace import WorkspaceManager
from sitesmith.streaming import event_stream
from sitesmith.utils import console

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class GenerateProjectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    platform_tag: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("platformTag", "techName", "platform")
    )
    user_prompt: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("userPrompt", "prompt")
    )


class FileInput(BaseModel):
    code: str = ""
    language: Optional[str] = None


class UpdateCodeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_prompt: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("userPrompt", "prompt")
    )
    previous_prompt: str = Field(default="", validation_alias=AliasChoices("previousPrompt"))
    platform_tag: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("platformTag", "projectType")
    )
    files: dict[str, FileInput] = Field(default_factory=dict)


class PreviewFileInput(BaseModel):
    path: str
    content: str = ""


class PreviewRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    platform_tag: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("platformTag", "framework")
    )
    files: list[PreviewFileInput] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(config: Config, client: CompletionClient | None = None) -> FastAPI:
    """Build the application around an explicit configuration.

    Args:
        config: Settings for the server, pipeline and previews.
        client: Completion client shared by all sessions; built from
            ``config.llm`` when omitted.
    """
    client = client or create_client(config.llm)
    workspaces = WorkspaceManager(config.preview)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(workspaces.run_cleanup_loop())
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    app = FastAPI(title="sitesmith", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.workspaces = workspaces
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PreviewError)
    async def preview_error(request: Request, exc: PreviewError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(WorkspaceNotFoundError)
    async def workspace_not_found(request: Request, exc: WorkspaceNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": str(exc)})

    def platform_of(requested: Optional[str]) -> str:
        return (requested or config.generation.default_platform).lower()

    def stream(events: AsyncIterator, request: Request, cancel: asyncio.Event) -> StreamingResponse:
        return StreamingResponse(
            event_stream(events, request.is_disconnected, cancel),
            media_type="text/event-stream",
            headers=STREAM_HEADERS,
        )

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    @app.post("/api/generate-project")
    async def generate_project(body: GenerateProjectRequest, request: Request) -> StreamingResponse:
        platform = platform_of(body.platform_tag)
        console.print(f"[cyan]POST /api/generate-project[/cyan] platform={platform}")
        cancel = asyncio.Event()
        orchestrator = GenerationOrchestrator(config, client)
        return stream(orchestrator.generate(body.user_prompt, platform, cancel), request, cancel)

    @app.post("/api/update-code")
    async def update_code(body: UpdateCodeRequest, request: Request) -> StreamingResponse:
        platform = platform_of(body.platform_tag)
        console.print(
            f"[cyan]POST /api/update-code[/cyan] platform={platform} files={len(body.files)}"
        )
        files = {
            path: GeneratedFile.for_path(path, file.code) for path, file in body.files.items()
        }
        cancel = asyncio.Event()
        orchestrator = GenerationOrchestrator(config, client)
        events = orchestrator.update(
            body.user_prompt, body.previous_prompt, platform, files, cancel
        )
        return stream(events, request, cancel)

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    @app.post("/api/preview")
    async def create_preview(body: PreviewRequest) -> dict[str, str]:
        platform = platform_of(body.platform_tag)
        console.print(f"[cyan]POST /api/preview[/cyan] platform={platform} files={len(body.files)}")
        files = {file.path: file.content for file in body.files}
        workspace_id = await workspaces.create_workspace(files, platform)
        preview_url = await workspaces.get_preview_url(workspace_id)
        return {"workspaceId": workspace_id, "previewUrl": preview_url}

    @app.get("/api/preview/{workspace_id}")
    async def get_preview(workspace_id: str) -> dict[str, str]:
        return {"previewUrl": await workspaces.get_preview_url(workspace_id)}

    @app.delete("/api/preview/{workspace_id}")
    async def delete_preview(workspace_id: str) -> dict[str, bool]:
        await workspaces.cleanup(workspace_id)
        return {"deleted": True}

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "provider": config.llm.provider}

    app.mount(
        config.preview.url_prefix,
        StaticFiles(directory=workspaces.root_dir, html=True),
        name="preview",
    )
    return app
