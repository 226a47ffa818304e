from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.logging import RichHandler

from scanpad import __version__
from scanpad.ansi import ANSIRenderer, StyledRun, runs_to_text
from scanpad.command import is_no_color
from scanpad.runner import CommandRunner

log = logging.getLogger("scanpad")

COMMANDS = {"edit", "run"}


class ConsoleSurface:
    """Writes styled runs to a Rich console."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def append_runs(self, runs: Sequence[StyledRun]) -> None:
        self.console.print(runs_to_text(runs), end="", soft_wrap=True, highlight=False)


async def run_command(command_line: str, console: Console, plain: bool = False) -> int:
    """Run a command line, and write its output to the console.

    Args:
        command_line: Command line to run.
        console: Console to write to.
        plain: Strip colors from the output.

    Returns:
        The process exit code, or 1 if it couldn't be run.
    """
    renderer = ANSIRenderer(ConsoleSurface(console))
    exit_code: int | None = None

    def on_line(line: str) -> None:
        renderer.append_text(line, plain)

    def on_exit(code: int) -> None:
        nonlocal exit_code
        exit_code = code

    runner = CommandRunner()
    runner.run(command_line, on_line, on_exit, lambda message: None)
    try:
        await runner.wait()
    finally:
        runner.terminate()
    return 1 if exit_code is None else exit_code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scanpad",
        description="Edit a scan template, and run the scanner against a target",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--debug", action="store_true", help="Log debug messages"
    )
    subparsers = parser.add_subparsers(dest="command")

    # --debug may also follow the command; SUPPRESS keeps a value given before it
    debug_parser = argparse.ArgumentParser(add_help=False)
    debug_parser.add_argument(
        "--debug", action="store_true", default=argparse.SUPPRESS, help="Log debug messages"
    )

    edit_parser = subparsers.add_parser(
        "edit", parents=[debug_parser], help="Open the template editor (default)"
    )
    edit_parser.add_argument("template", nargs="?", type=Path, help="Template to load")
    edit_parser.add_argument("--tool", "-t", help="Path to the scanner executable")
    edit_parser.add_argument("--url", "-u", help="Target URL")
    edit_parser.add_argument("--config-dir", type=Path, help="Directory for settings")

    run_parser = subparsers.add_parser(
        "run",
        parents=[debug_parser],
        help="Run a command line, and print its colored output",
    )
    run_parser.add_argument("command_line", help="Command line to run (quote it)")
    run_parser.add_argument(
        "--no-color", action="store_true", help="Strip colors from the output"
    )
    return parser


def edit(args: argparse.Namespace) -> int:
    from textual.logging import TextualHandler

    from scanpad.app import ScanpadApp
    from scanpad.template import DEFAULT_TEMPLATE

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        handlers=[TextualHandler()],
    )
    template = DEFAULT_TEMPLATE
    if args.template is not None:
        try:
            template = args.template.read_text("utf-8")
        except OSError as error:
            log.error("Unable to read %s; %s", args.template, error)
            return 1

    app = ScanpadApp(
        template,
        tool_path=args.tool,
        target_url=args.url,
        config_dir=args.config_dir,
    )
    try:
        app.run()
    finally:
        if "session" in app.__dict__:
            app.session.close()
    return app.return_code or 0


def run(args: argparse.Namespace) -> int:
    console = Console(highlight=False)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    plain = args.no_color or is_no_color(args.command_line)
    try:
        return asyncio.run(run_command(args.command_line, console, plain))
    except KeyboardInterrupt:
        return 130


def main(argv: Sequence[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)
    # "edit" is the default command
    index = 0
    while index < len(argv) and argv[index] == "--debug":
        index += 1
    if index == len(argv) or argv[index] not in COMMANDS | {"-h", "--help", "--version"}:
        argv.insert(index, "edit")
    args = build_parser().parse_args(argv)
    if args.command == "run":
        return run(args)
    return edit(args)
