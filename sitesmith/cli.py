"""Command-line entry point.

Two subcommands:

* ``sitesmith serve``            -- run the HTTP API with uvicorn
* ``sitesmith generate PROMPT``  -- run one generation in-process and write
  the files to disk
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from rich.table import Table

from sitesmith.config import Config
from sitesmith.errors import PreviewError
from sitesmith.generation.events import (
    AnalysisEvent,
    CodeEvent,
    CompleteEvent,
    ErrorEvent,
    ProgressEvent,
    StartEvent,
    StructureEvent,
    UpdateEvent,
)
from sitesmith.generation.models import FileDescriptor
from sitesmith.generation.orchestrator import GenerationOrchestrator
from sitesmith.generation.skeletons import known_platforms
from sitesmith.preview.workspace import safe_relative_path
from sitesmith.utils import (
    console,
    format_duration,
    print_error,
    print_header,
    print_success,
    print_warning,
    write_file,
)


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


async def run_generation(config: Config, prompt: str, platform: str, output_dir: Path) -> bool:
    """Run one generation session and write every generated file.

    Files are written relative to ``output_dir`` without the synthetic
    root folder of the planned tree. Paths that would land outside
    ``output_dir`` are reported as failed and not written.

    Returns:
        ``True`` if the session ended with ``complete``.
    """
    print_header(f"sitesmith: {platform} project")
    orchestrator = GenerationOrchestrator(config)
    loop = asyncio.get_running_loop()
    started = loop.time()
    written: list[str] = []
    failed: list[str] = []
    completed = False

    async for event in orchestrator.generate(prompt, platform):
        if isinstance(event, (StartEvent, ProgressEvent)):
            console.print(f"[cyan]{event.data.message}[/cyan]")
        elif isinstance(event, AnalysisEvent):
            console.print(event.data.message)
        elif isinstance(event, StructureEvent):
            console.print(f"  Planned [bold]{len(event.data.files)}[/bold] files")
            console.print(f"  [dim]{event.data.analysis}[/dim]")
        elif isinstance(event, (CodeEvent, UpdateEvent)):
            relative = FileDescriptor(path=event.data.path).relative_path
            try:
                target = output_dir / safe_relative_path(relative)
            except PreviewError as exc:
                failed.append(relative)
                print_warning(str(exc))
                continue
            await write_file(target, event.data.code)
            written.append(relative)
            console.print(f"  [green]+[/green] {relative}")
        elif isinstance(event, ErrorEvent):
            if event.is_file_scoped:
                failed.append(event.data.path or "")
                print_warning(event.data.message)
            else:
                print_error(event.data.message)
        elif isinstance(event, CompleteEvent):
            completed = True
        else:
            raise TypeError(f"Unknown stream event: {type(event).__name__}")

    table = Table(title="Generated files", show_header=True, header_style="bold")
    table.add_column("File")
    table.add_column("Status")
    for path in written:
        table.add_row(path, "[green]written[/green]")
    for path in failed:
        table.add_row(path, "[red]failed[/red]")
    console.print(table)
    console.print(f"  Finished in {format_duration(loop.time() - started)}")
    return completed


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``sitesmith``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="sitesmith",
        description="sitesmith -- chat-driven project scaffolder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  sitesmith serve --port 5000\n"
            "  sitesmith generate \"a todo app\" --platform none -o ./todo\n"
        ),
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="JSON configuration file (default: read environment variables)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: from config)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: from config)")

    generate = subparsers.add_parser("generate", help="Generate a project in-process")
    generate.add_argument("prompt", help="Description of the project to build")
    generate.add_argument(
        "--platform", "-p",
        default=None,
        choices=known_platforms(),
        help="Target platform (default: from config)",
    )
    generate.add_argument(
        "--output", "-o",
        default="./output",
        help="Output directory (default: ./output)",
    )

    args = parser.parse_args(argv)

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print_error(f"Configuration file not found: {config_path}")
            sys.exit(1)
        config = Config.load(config_path)
    else:
        config = Config.from_env()

    if args.command == "serve":
        import uvicorn

        from sitesmith.server import create_app

        host = args.host or config.server.host
        port = args.port or config.server.port
        console.print(f"[bold]sitesmith[/bold] listening on http://{host}:{port}")
        uvicorn.run(create_app(config), host=host, port=port)
        return

    platform = args.platform or config.generation.default_platform
    ok = asyncio.run(run_generation(config, args.prompt, platform, Path(args.output)))
    if ok:
        print_success(f"Project written to {Path(args.output).resolve()}")
    else:
        print_error("Generation failed.")
        sys.exit(1)


if __name__ == "__main__":
    main()
