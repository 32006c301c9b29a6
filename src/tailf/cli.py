"""Command-line interface for tailf."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from rich.console import Console

from tailf.config import LoggingConfig, load_config
from tailf.engine import TailF
from tailf.errors import ConfigError, TailReadError
from tailf.logging import setup_logging
from tailf.options import TailOptions

console = Console(stderr=True)

EXIT_OK = 0
EXIT_READ_ERROR = 1
EXIT_CONFIG_ERROR = 2


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="tailf",
        description="Follow a file and print (or dispatch) everything appended to it",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )
    parser.add_argument("path", type=Path, help="File to follow")
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be repeated)",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-error output on stderr",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Extra config file, merged over system/user/project config",
    )
    parser.add_argument(
        "--mode",
        choices=["binary", "line"],
        help="Deliver raw chunks or lists of lines (default: binary)",
    )
    parser.add_argument(
        "--poll-ms",
        type=int,
        dest="poll_interval_ms",
        help="Poll every N milliseconds instead of using filesystem events",
    )
    parser.add_argument(
        "--no-fs-events",
        dest="fs_events_enabled",
        action="store_false",
        default=None,
        help="Disable filesystem events (read once unless --poll-ms is set)",
    )
    parser.add_argument(
        "--init-delay-ms",
        type=int,
        help="Delay before the first read (default: 100)",
    )
    parser.add_argument(
        "--sink",
        help="Deliver to package.module:function instead of stdout",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Log every filesystem event",
    )
    return parser


def _logging_config(base: LoggingConfig, verbose: int) -> LoggingConfig:
    if verbose <= 0:
        return base
    # -v = verbose, -vv = trace
    return replace(base, verbose=min(2 + verbose, 4))


async def run_tail(options: TailOptions, quiet: bool = False) -> int:
    """Run one engine until it stops or the task is cancelled.

    Args:
        options: Engine options
        quiet: Suppress status output

    Returns:
        Exit code
    """
    engine = TailF.from_options(options)
    try:
        await engine.start()
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_CONFIG_ERROR
    except OSError as e:
        console.print(f"[red]Error: cannot open {options.path}: {e}[/red]")
        return EXIT_READ_ERROR

    if not quiet:
        if options.poll_interval_ms is not None:
            trigger = f"polling every {options.poll_interval_ms} ms"
        elif options.fs_events:
            trigger = "filesystem events"
        else:
            trigger = "single read"
        console.print(f"[dim]Following {options.path} ({options.mode}, {trigger})[/dim]")

    try:
        await engine.wait_closed()
    except TailReadError as e:
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_READ_ERROR
    finally:
        await engine.close()
    return EXIT_OK


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    config = load_config(config_file=parsed.config)
    setup_logging(_logging_config(config.logging, parsed.verbose))

    try:
        options = TailOptions.from_defaults(
            str(parsed.path),
            config.tail,
            sink=parsed.sink,
            mode=parsed.mode,
            poll_interval_ms=parsed.poll_interval_ms,
            fs_events_enabled=parsed.fs_events_enabled,
            init_delay_ms=parsed.init_delay_ms,
            debug=parsed.debug,
        )
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_CONFIG_ERROR

    try:
        return asyncio.run(run_tail(options, quiet=parsed.quiet))
    except KeyboardInterrupt:
        return EXIT_OK
