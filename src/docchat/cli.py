"""CLI entry point and subcommand definitions."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import NoReturn

from docchat.config import Config, ConfigError, get_config_path, load_config
from docchat.history import HistoryError, latest_sourced_index, load_transcript, save_transcript
from docchat.markup import markdown_to_html, markdown_to_rich

logger = logging.getLogger(__name__)

FORMATS = ("html", "rich")


def _fail(message: str) -> NoReturn:
    print(message, file=sys.stderr)
    sys.exit(1)


def _convert(text: str, fmt: str, config: Config, *, escape: bool = False) -> str:
    if fmt == "rich":
        return markdown_to_rich(text)
    return markdown_to_html(text, config.html, escape=escape)


def _read_input(path: str | None) -> str:
    """Read the named file, or stdin when no file (or '-') is given."""
    try:
        if path is None or path == "-":
            return sys.stdin.read()
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _fail(f"Cannot read {path or 'stdin'}: {e}")


def _cmd_render(args: argparse.Namespace, config: Config) -> None:
    """Convert Markdown text to markup."""
    text = _read_input(args.file)
    print(_convert(text, args.format, config, escape=args.escape))


def _cmd_sources(args: argparse.Namespace, config: Config) -> None:
    """Print the sources of the most recent sourced answer in a transcript."""
    path = Path(args.transcript)
    if not path.exists():
        _fail(f"Transcript not found: {path}")
    history = load_transcript(path)
    idx = latest_sourced_index(history)
    if idx is None:
        print("No message with sources.")
        return
    for n, source in enumerate(history[idx].sources, start=1):
        heading = f"Source {n}"
        if source.title:
            heading += f": {source.title}"
        print(heading)
        print(_convert(source.text, args.format, config, escape=args.escape))
        print()


def _launch_tui(args: argparse.Namespace, config: Config) -> None:
    """Launch the Textual TUI, with a backend worker when an endpoint is configured.

    Imports are deferred to avoid loading Textual/backend for CLI-only commands.
    """
    from docchat.backend import backend_worker  # noqa: PLC0415
    from docchat.messages import Request, Response  # noqa: PLC0415, TC001
    from docchat.tui.app import ChatApp  # noqa: PLC0415

    transcript = Path(args.transcript) if getattr(args, "transcript", None) else None
    history = load_transcript(transcript) if transcript is not None else []

    request_queue: asyncio.Queue[Request] = asyncio.Queue()
    response_queue: asyncio.Queue[Response] = asyncio.Queue()

    app = ChatApp(
        config=config,
        history=history,
        request_queue=request_queue,
        response_queue=response_queue,
    )

    async def _run() -> None:
        worker = None
        if config.endpoint:
            worker = asyncio.create_task(
                backend_worker(request_queue, response_queue, config.endpoint)
            )
        else:
            logger.info("No endpoint configured, chat is read-only")
        try:
            await app.run_async()
        finally:
            if worker is not None:
                worker.cancel()

    asyncio.run(_run())

    if transcript is not None:
        save_transcript(transcript, app.history)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to the appropriate subcommand."""
    parser = argparse.ArgumentParser(
        prog="docchat",
        description="Terminal chat client for document Q&A services",
    )
    parser.add_argument("--config", help="Path to config.toml (default: XDG config dir)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # chat
    chat_parser = subparsers.add_parser("chat", help="Open the chat screen (default)")
    chat_parser.add_argument("--transcript", help="JSON transcript to load and save")

    # render
    render_parser = subparsers.add_parser("render", help="Convert Markdown text to markup")
    render_parser.add_argument("file", nargs="?", help="Input file (default: stdin)")
    render_parser.add_argument("--format", choices=FORMATS, default="html")
    render_parser.add_argument("--escape", action="store_true", help="HTML-escape the text")

    # sources
    sources_parser = subparsers.add_parser(
        "sources", help="Show the sources of the latest answer in a transcript"
    )
    sources_parser.add_argument("transcript", help="JSON transcript")
    sources_parser.add_argument("--format", choices=FORMATS, default="html")
    sources_parser.add_argument("--escape", action="store_true", help="HTML-escape the text")

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    try:
        config = load_config(Path(args.config) if args.config else get_config_path())
    except ConfigError as e:
        _fail(str(e))

    dispatch = {
        None: _launch_tui,
        "chat": _launch_tui,
        "render": _cmd_render,
        "sources": _cmd_sources,
    }
    try:
        dispatch[args.command](args, config)
    except HistoryError as e:
        _fail(str(e))
