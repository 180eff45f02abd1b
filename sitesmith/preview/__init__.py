"""sitesmith preview workspaces.

Writes a generated file set to disk so the browser can load it, and evicts
it again after the retention period.

Key classes:
    WorkspaceManager  - Workspace creation, URL lookup and periodic eviction
    Workspace         - Metadata of one live workspace
"""

from .standalone import build_standalone_html, find_entry_page
from .workspace import Workspace, WorkspaceManager, package_json, safe_relative_path

__all__ = [
    # Workspaces
    "WorkspaceManager",
    "Workspace",
    "package_json",
    "safe_relative_path",
    # Static previews
    "build_standalone_html",
    "find_entry_page",
]
