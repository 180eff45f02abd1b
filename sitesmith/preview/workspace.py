"""On-disk preview workspaces.

Every preview request gets its own directory under
``PreviewConfig.root_dir`` named by a random id. Files are written inside
it (paths may never leave it), framework projects get a ``package.json``,
and static projects get a single ``preview.html`` with their stylesheet
and script inlined. Workspaces are removed after
``PreviewConfig.retention_seconds`` by a periodic sweep.

The id -> workspace map is shared between request handlers and the sweep
task, so every access goes through one ``asyncio.Lock``.
"""

from __future__ import annotations

import asyncio
import json
import shutil
import time
import uuid
from collections.abc import Callable, Mapping
from pathlib import Path, PurePosixPath
from typing import Any

from pydantic import BaseModel, Field

from sitesmith.config import PreviewConfig
from sitesmith.errors import PreviewError, WorkspaceNotFoundError
from sitesmith.preview.standalone import build_standalone_html
from sitesmith.utils import console, ensure_dir, print_warning, strip_code_fences, write_file

STATIC_PLATFORM = "none"
STANDALONE_PAGE = "preview.html"
DEFAULT_ENTRY = "index.html"

# ---------------------------------------------------------------------------
# package.json templates
# ---------------------------------------------------------------------------

_DEPENDENCIES: dict[str, dict[str, str]] = {
    "react": {
        "react": "^18.2.0",
        "react-dom": "^18.2.0",
        "react-scripts": "5.0.1",
    },
    "vue": {
        "vue": "^3.3.0",
        "@vitejs/plugin-vue": "^4.5.0",
    },
}

_DEV_DEPENDENCIES: dict[str, dict[str, str]] = {
    "react": {
        "@babel/plugin-proposal-private-property-in-object": "^7.21.11",
    },
    "vue": {
        "vite": "^5.0.0",
    },
}


def package_json(platform: str) -> dict[str, Any]:
    """Minimal ``package.json`` for a framework preview."""
    return {
        "name": "preview-project",
        "version": "1.0.0",
        "private": True,
        "scripts": {"start": "react-scripts start" if platform == "react" else "vite"},
        "dependencies": dict(_DEPENDENCIES.get(platform, {})),
        "devDependencies": dict(_DEV_DEPENDENCIES.get(platform, {})),
    }


def safe_relative_path(path: str) -> PurePosixPath:
    """Validate a client-supplied file path.

    Backslashes are treated as separators. Empty, absolute and drive-letter
    paths are rejected, as is any ``..`` segment.

    Raises:
        PreviewError: If the path could escape the workspace.
    """
    candidate = PurePosixPath(path.replace("\\", "/").strip())
    parts = [part for part in candidate.parts if part != "."]
    if not parts or candidate.is_absolute() or ":" in parts[0] or ".." in parts:
        raise PreviewError(f"Unsafe file path: {path!r}")
    return PurePosixPath(*parts)


class Workspace(BaseModel):
    """Metadata kept for one live workspace."""

    workspace_id: str
    path: Path
    platform: str
    created: float = Field(..., description="Clock reading at creation")
    entry: str = Field(default=DEFAULT_ENTRY, description="Page the preview URL points at")


class WorkspaceManager:
    """Creates, serves and evicts preview workspaces.

    Args:
        config: Preview settings (root directory, retention, URL prefix).
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        config: PreviewConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.root_dir = ensure_dir(config.root_dir)
        self._clock = clock
        self._workspaces: dict[str, Workspace] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._workspaces)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create_workspace(self, files: Mapping[str, str], platform: str) -> str:
        """Write ``files`` into a fresh workspace and return its id.

        Raises:
            PreviewError: On an empty file set, an unsafe path, or a static
                project without exactly one HTML page.
        """
        if not files:
            raise PreviewError("No files to preview")
        platform = (platform or STATIC_PLATFORM).lower()

        cleaned: dict[str, str] = {}
        for raw_path, content in files.items():
            cleaned[safe_relative_path(raw_path).as_posix()] = strip_code_fences(content)

        standalone = (
            build_standalone_html(cleaned) if platform == STATIC_PLATFORM else None
        )

        workspace_id = str(uuid.uuid4())
        workspace_path = self.root_dir / workspace_id
        console.print(f"  Creating preview workspace [bold]{workspace_id}[/bold] ({platform})")
        try:
            for relative, content in cleaned.items():
                await write_file(workspace_path / relative, content)
            if standalone is not None:
                await write_file(workspace_path / STANDALONE_PAGE, standalone)
            else:
                await write_file(
                    workspace_path / "package.json",
                    json.dumps(package_json(platform), indent=2),
                )
        except OSError as exc:
            await asyncio.to_thread(shutil.rmtree, workspace_path, True)
            raise PreviewError(f"Failed to write preview workspace: {exc}") from exc

        workspace = Workspace(
            workspace_id=workspace_id,
            path=workspace_path,
            platform=platform,
            created=self._clock(),
            entry=STANDALONE_PAGE if standalone is not None else DEFAULT_ENTRY,
        )
        async with self._lock:
            self._workspaces[workspace_id] = workspace
        return workspace_id

    async def get_preview_url(self, workspace_id: str) -> str:
        """URL under which the workspace's entry page is served.

        Raises:
            WorkspaceNotFoundError: If the id is unknown or has expired.
        """
        async with self._lock:
            workspace = self._workspaces.get(workspace_id)
            if workspace is None or self._expired(workspace):
                raise WorkspaceNotFoundError(workspace_id)
        prefix = self.config.url_prefix.rstrip("/")
        return f"{prefix}/{workspace_id}/{workspace.entry}"

    async def cleanup(self, workspace_id: str) -> bool:
        """Delete a workspace. Returns ``False`` if it was not known."""
        async with self._lock:
            workspace = self._workspaces.pop(workspace_id, None)
        if workspace is None:
            return False
        await asyncio.to_thread(shutil.rmtree, workspace.path, True)
        return True

    async def sweep_expired(self) -> list[str]:
        """Remove every workspace older than the retention period."""
        async with self._lock:
            expired = [ws for ws in self._workspaces.values() if self._expired(ws)]
            for workspace in expired:
                del self._workspaces[workspace.workspace_id]

        for workspace in expired:
            await asyncio.to_thread(shutil.rmtree, workspace.path, True)
        if expired:
            console.print(f"  [dim]Evicted {len(expired)} expired preview workspace(s)[/dim]")
        return [ws.workspace_id for ws in expired]

    async def run_cleanup_loop(self) -> None:
        """Sweep forever at ``sweep_interval_seconds``; cancel the task to stop."""
        while True:
            await asyncio.sleep(self.config.sweep_interval_seconds)
            try:
                await self.sweep_expired()
            except OSError as exc:
                print_warning(f"Preview sweep failed: {exc}")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _expired(self, workspace: Workspace) -> bool:
        return self._clock() - workspace.created > self.config.retention_seconds
