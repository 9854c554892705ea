"""CLI entry point for the dashboard server."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

from . import __version__
from .config import ConfigValidationError, DashboardConfig, load_config
from .util import configure_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="axeldash",
        description="Serve activity logs, conversations and memory notes over HTTP.",
    )
    parser.add_argument("--config", default=None, help="Path to an axeldash.toml file")
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--logs-dir", default=None)
    parser.add_argument("--memory-dir", default=None)
    parser.add_argument("--advisors-dir", default=None)
    parser.add_argument("--log-level", default=None)
    parser.add_argument("--version", action="store_true")
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, object]:
    return {
        "host": args.host,
        "port": args.port,
        "logs_dir": args.logs_dir,
        "memory_dir": args.memory_dir,
        "advisors_dir": args.advisors_dir,
        "log_level": args.log_level,
    }


def _print_banner(console: Console, cfg: DashboardConfig) -> None:
    title = Text()
    title.append("axel dashboard", style="bold")
    title.append(f" {__version__}", style="dim")
    title.append(f" at http://{cfg.host}:{cfg.port}")
    console.print(title)

    paths = Table(show_header=False, expand=False, show_edge=False, pad_edge=False, box=None)
    paths.add_column("Source", style="bold cyan")
    paths.add_column("Path", style="dim")
    paths.add_row("activity", str(cfg.activity_file))
    paths.add_row("conversations", str(cfg.conversations_dir))
    paths.add_row("memory", str(cfg.memory_dir))
    paths.add_row("advisors", str(cfg.advisors_dir))
    console.print(paths)


def serve(cfg: DashboardConfig) -> None:
    import uvicorn

    from .web import create_app

    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port, log_config=None)


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    console = Console()

    if args.version:
        console.print(Text(f"axeldash {__version__}", style="bold"))
        sys.exit(0)

    try:
        cfg = load_config(
            Path(args.config) if args.config else None,
            overrides=_overrides(args),
        )
    except ConfigValidationError as exc:
        console.print(Text.assemble(("error: ", "red"), str(exc)))
        sys.exit(2)

    configure_logging(cfg.log_level)
    _print_banner(console, cfg)
    try:
        serve(cfg)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
