"""Flatten a project tree into the ordered list of files to generate."""

from __future__ import annotations

import re

from sitesmith.generation.models import DirectoryNode, FileDescriptor

_REPEATED_SEPARATORS_RE = re.compile(r"/{2,}")


def _join(*parts: str) -> str:
    path = _REPEATED_SEPARATORS_RE.sub("/", "/".join(parts))
    return path.strip("/")


def flatten(tree: DirectoryNode) -> list[FileDescriptor]:
    """Walk ``tree`` depth-first, pre-order, and return its file nodes.

    Directories are not emitted. Each file's path is every ancestor name
    (root included) joined with ``/``; doubled separators are collapsed and
    leading/trailing separators dropped, so an empty root name yields
    root-relative paths. The order is the generation order.
    """
    files: list[FileDescriptor] = []

    def _visit(node: DirectoryNode, parent_path: str) -> None:
        current = _join(parent_path, node.name) if parent_path else _join(node.name)
        if node.is_file:
            files.append(FileDescriptor(path=current, purpose=node.purpose))
            return
        for child in node.children or []:
            _visit(child, current)

    _visit(tree, "")
    return files
