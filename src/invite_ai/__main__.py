"""Entry point for ``python -m invite_ai`` and the ``invite-ai`` script.

Turns the text given on the command line (or ``-`` for stdin) into an
``.ics`` file in the configured output directory.  Uses stdlib
:mod:`argparse` for argument parsing.

Exit codes:
    0 -- Invite created.
    1 -- No event detected, empty input, pipeline or configuration error.
    2 -- Argument parsing error (handled by argparse).
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import webbrowser
from dataclasses import replace
from pathlib import Path

from invite_ai.config import ConfigError, Settings, load_settings
from invite_ai.host import BridgeCalendarSink, BridgeSecretProvider, LocalHostBridge
from invite_ai.llm import build_completion_client
from invite_ai.log import setup_logging
from invite_ai.pipeline import InviteOrchestrator, InviteResult


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="invite-ai",
        description="Create a calendar invite (.ics) from a plain-text description.",
    )
    parser.add_argument(
        "text",
        nargs="+",
        help='Event description, e.g. "lunch with Sam tomorrow at the cafe". '
        "Use - to read from stdin.",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for the generated .ics file (overrides INVITE_AI_OUTPUT_DIR).",
    )
    parser.add_argument(
        "--open",
        action="store_true",
        default=False,
        help="Open the generated file with the default calendar application.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )
    return parser


def _read_text(parts: list[str]) -> str:
    if parts == ["-"]:
        return sys.stdin.read()
    return " ".join(parts)


def _open_in_calendar(path: Path) -> bool:
    return webbrowser.open(path.resolve().as_uri())


def build_orchestrator(settings: Settings, open_file: bool = False) -> InviteOrchestrator:
    """Wire an :class:`InviteOrchestrator` to the local host bridge."""
    bridge = LocalHostBridge(settings, opener=_open_in_calendar if open_file else None)
    return InviteOrchestrator(
        completion_client=build_completion_client(settings),
        secret_provider=BridgeSecretProvider(bridge),
        sink=BridgeCalendarSink(bridge),
    )


def _report(result: InviteResult) -> int:
    if result.ok:
        print(f"{result.message}: {result.sink_message}")
        return 0
    print(f"Error: {result.message}", file=sys.stderr)
    return 1


def main(argv: list[str] | None = None) -> int:
    """Run the invite-ai CLI.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``
            when ``None`` (the normal case).

    Returns:
        Exit code: ``0`` on success, ``1`` otherwise.
    """
    args = build_parser().parse_args(argv if argv is not None else sys.argv[1:])

    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    setup_logging("DEBUG" if args.verbose else settings.log_level)

    if args.output_dir:
        settings = replace(settings, output_dir=Path(args.output_dir).expanduser())

    orchestrator = build_orchestrator(settings, open_file=args.open)
    result = asyncio.run(orchestrator.create_invite(_read_text(args.text)))
    return _report(result)


if __name__ == "__main__":
    raise SystemExit(main())
