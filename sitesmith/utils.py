"""Shared utility functions for sitesmith.

Provides the Rich console used for all operator-facing output, Markdown
fence stripping for model output, extension-to-language mapping, and small
file-system and formatting helpers.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from rich.console import Console
from rich.rule import Rule

console = Console()

# ---------------------------------------------------------------------------
# Model output helpers
# ---------------------------------------------------------------------------

_FENCED_RE = re.compile(r"^\s*```[\w.+-]*[ \t]*\n([\s\S]*?)\n?[ \t]*```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a Markdown code fence wrapped around model output.

    The fence is removed only when the text both opens and closes with one,
    so unfenced files that end in a code block (a README, say) are left
    alone and applying it to already-clean code is a no-op.

    Examples::

        strip_code_fences("```js\\nlet a = 1;\\n```") -> "let a = 1;"
        strip_code_fences("let a = 1;")               -> "let a = 1;"
    """
    match = _FENCED_RE.match(text)
    if match is None:
        return text.strip()
    return match.group(1).strip()


def file_extension(path: str) -> str:
    """Return the lower-cased extension of ``path`` without the dot.

    Dotfiles such as ``.gitignore`` yield their name (``"gitignore"``),
    matching how the file tree labels them.
    """
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Returns:
        The resolved ``Path`` object.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path.resolve()


def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


async def write_file(path: str | Path, content: str) -> Path:
    """Write ``content`` to ``path`` in a worker thread."""
    target = Path(path)
    await asyncio.to_thread(_write_file, target, content)
    return target


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
        format_duration(3661.0) -> "1h 1m 1s"
    """
    if seconds < 0:
        return "0.0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_header(title: str, color: str = "bright_cyan") -> None:
    """Print a full-width rule announcing a session or request."""
    console.print()
    console.print(Rule(f"[bold {color}] {title} [/bold {color}]", style=color))


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
