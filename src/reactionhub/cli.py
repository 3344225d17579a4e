"""CLI entry point for reactionhub."""

import argparse
import logging
import os
import signal
import sys
import threading

from rich.console import Console
from rich.markup import escape
from rich.table import Table

import reactionhub.io.logging_setup
from reactionhub.app.host import ReactionHost
from reactionhub.core.reaction import CallResult
from reactionhub.errors import ConfigError
from reactionhub.event_types import EventKind, parse_event_kind
from reactionhub.io.settings import load_config

logger = logging.getLogger(__name__)


def _coerce_arg(raw: str) -> object:
    text = raw.strip()
    if text.lstrip("-").isdigit():
        return int(text)
    return raw


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hot-reloading script reaction host")
    parser.add_argument(
        "--configs",
        type=str,
        default=None,
        help="Configs directory holding reactions/ and scripts/ (default: $REACTIONHUB_CONFIGS_DIR or ./configs)",
    )
    parser.add_argument(
        "--data",
        type=str,
        default=None,
        help="Data directory for storage and points (default: <configs>/../data)",
    )
    parser.add_argument(
        "--debounce-ms",
        type=int,
        default=None,
        help="Quiet period before a changed reaction file is reloaded",
    )
    parser.add_argument(
        "--force-polling",
        action="store_true",
        default=None,
        help="Poll the filesystem instead of using native notifications",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--list", action="store_true", help="Load everything, print a table, exit")
    mode.add_argument("--call", metavar="NAME", help="Run one catalog script and print its result")
    mode.add_argument("--dispatch", metavar="KIND", help="Fire one event of KIND and print results")
    parser.add_argument(
        "--arg",
        action="append",
        default=[],
        help="Positional argument for --dispatch (repeatable; integers are converted)",
    )
    return parser


def _format_result(result: CallResult) -> str:
    if not result.success:
        return f"[red]failed[/red] {escape(str(result.error_message))}"
    if result.result.is_nil:
        return result.status.value
    return f"{result.status.value} -> {escape(repr(result.result.value))}"


def _print_listing(console: Console, host: ReactionHost) -> None:
    table = Table(title="Reactions")
    table.add_column("Name", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Cooldown", justify="right")
    table.add_column("Enabled")
    for reaction in sorted(host.registry.all(), key=lambda r: r.name.casefold()):
        table.add_row(
            reaction.name,
            reaction.kind.display_name,
            f"{reaction.cooldown_ms}ms" if reaction.cooldown_ms else "-",
            "yes" if reaction.enabled else "no",
        )
    console.print(table)

    scripts = Table(title="Scripts")
    scripts.add_column("Name", no_wrap=True)
    scripts.add_column("File", overflow="fold")
    for name in sorted(host.catalog.keys(), key=str.casefold):
        entry = host.catalog.get(name)
        scripts.add_row(name, entry.file_path if entry else "")
    console.print(scripts)


def _run_until_signalled(host: ReactionHost) -> None:
    stop = threading.Event()

    def _handle(signum, frame):
        logger.info("received signal %s, shutting down", signal.Signals(signum).name)
        stop.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)
    host.start(watch=True)
    while not stop.wait(0.5):
        pass


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    runtime = reactionhub.io.logging_setup.configure()
    logger.debug("logging to %s", runtime.file_path)

    overrides = {"debounce_ms": args.debounce_ms, "force_polling": args.force_polling}
    environ = dict(os.environ)
    if args.data:
        environ["REACTIONHUB_DATA_DIR"] = args.data
    try:
        config = load_config(args.configs, environ=environ, overrides=overrides)
    except ConfigError as e:
        print(f"reactionhub: {e}", file=sys.stderr)
        return 2

    console = Console()
    host = ReactionHost(config)
    try:
        if args.list:
            host.start(watch=False)
            _print_listing(console, host)
            return 0

        if args.call:
            host.start(watch=False)
            result = host.dispatcher.call_script(args.call)
            console.print(f"{args.call}: {_format_result(result)}")
            return 0 if result.success else 1

        if args.dispatch:
            kind = parse_event_kind(args.dispatch)
            if kind is EventKind.NONE:
                print(f"reactionhub: unknown event kind {args.dispatch!r}", file=sys.stderr)
                return 2
            host.start(watch=False)
            results = host.dispatcher.dispatch(kind, *(_coerce_arg(a) for a in args.arg))
            if not results:
                console.print(f"no reactions for {kind.display_name}")
            for name, result in sorted(results.items()):
                console.print(f"{name}: {_format_result(result)}")
            return 0 if all(r.success for r in results.values()) else 1

        _run_until_signalled(host)
        return 0
    finally:
        host.stop()


if __name__ == "__main__":
    sys.exit(main())
