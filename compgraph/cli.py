"""CLI entrypoints for compgraph commands."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List

from .config import CompGraphConfig, ConfigError, load_config
from .errors import CompGraphError
from .events import EventType, SessionEvent
from .logging import configure_logging, get_logger
from .models import RepositoryRef
from .session import AnalysisSession, collect_events
from .sources import GitHubSource, LocalSource, RepositorySource, parse_repo_url

DEFAULT_LOCAL_OUTPUT = "component-analysis.json"


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_output_option(parser: argparse.ArgumentParser, default: str | None) -> None:
    parser.add_argument(
        "-o",
        "--output",
        default=default,
        help="Write the component list as JSON to this file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="compgraph",
        description="Build a component graph from a React/Next.js repository.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .compgraph.yml or the directory containing it.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a GitHub repository.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    analyze_parser.add_argument("repo_url", help="GitHub repository URL.")
    analyze_parser.add_argument(
        "-b",
        "--branch",
        default="main",
        help="Branch to analyze (defaults to main).",
    )
    _add_output_option(analyze_parser, None)

    local_parser = subparsers.add_parser(
        "local",
        help="Analyze a project checked out on disk.",
    )
    _add_verbose_option(local_parser, suppress_default=True)
    local_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )
    _add_output_option(local_parser, None)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service exposing /analyze-repo.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default=None, help="Bind address.")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for compgraph commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "analyze":
        try:
            owner, name = parse_repo_url(args.repo_url)
        except CompGraphError as exc:
            parser.exit(1, f"{exc}\n")
        source = GitHubSource.from_config(config.github)
        repository = RepositoryRef(owner=owner, name=name, branch=args.branch)
        _run_and_report(parser, config, source, repository, args.output)
    elif args.command == "local":
        root = Path(args.path).expanduser().resolve()
        repository = RepositoryRef(owner="local", name=root.name, branch="working-tree")
        output = args.output or str(root / DEFAULT_LOCAL_OUTPUT)
        source = LocalSource(root, exclude_segments=config.analysis.exclude_segments)
        _run_and_report(parser, config, source, repository, output)
    elif args.command == "serve":
        from .service import run_service

        run_service(
            host=args.host or config.service.host,
            port=args.port or config.service.port,
            config=config,
        )
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_and_report(
    parser: argparse.ArgumentParser,
    config: CompGraphConfig,
    source: RepositorySource,
    repository: RepositoryRef,
    output: str | None,
) -> None:
    logger = get_logger("cli")
    session = AnalysisSession(
        source,
        repository,
        max_files=config.analysis.max_files,
        include_content=config.analysis.include_content,
        exclude_segments=config.analysis.exclude_segments,
    )
    events = asyncio.run(collect_events(session))
    terminal = _terminal_event(events)
    if terminal is None:  # pragma: no cover - only a cancelled session ends without one
        parser.exit(1, "compgraph analysis ended without a result\n")
    if terminal.type is EventType.ERROR:
        parser.exit(1, f"compgraph analysis failed: {terminal.payload['error']}\n")

    components = terminal.payload["components"]
    rendered = json.dumps(components, indent=2)
    if output:
        Path(output).write_text(rendered + "\n", encoding="utf-8")
        logger.info("Wrote %d components to %s", len(components), _relativize(Path(output)))
    else:
        print(rendered)
    print(
        f"Analyzed {terminal.payload['analyzedFiles']} components "
        f"from {terminal.payload['totalFiles']} files",
        file=sys.stderr,
    )


def _terminal_event(events: List[SessionEvent]) -> SessionEvent | None:
    for event in reversed(events):
        if event.is_terminal:
            return event
    return None


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
