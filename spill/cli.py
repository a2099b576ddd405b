"""spill — tail, search, export, and compact the structured log store."""

import argparse
import logging
import sqlite3
import sys

from spill import query
from spill.config import BACKENDS, load_config
from spill.filters import normalize_since
from spill.formatter import get_formatter
from spill.jsonl_store import JsonlStore
from spill.record import LEVELS
from spill.sqlite_store import SqliteStore
from spill.stats import compute_stats, format_stats_json, format_stats_text
from spill.store import open_store

logger = logging.getLogger(__name__)


def _since(value: str) -> str:
    try:
        return normalize_since(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="spill",
        description="Query and maintain the structured log store.",
    )
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        help="Store backend (default: $SPILL_BACKEND or sqlite)",
    )
    parser.add_argument(
        "--db",
        metavar="PATH",
        help="Store path (default: $SPILL_DB / $SPILL_LOG or .state/spill/)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    display = argparse.ArgumentParser(add_help=False)
    color = display.add_mutually_exclusive_group()
    color.add_argument(
        "--color",
        dest="color",
        action="store_true",
        default=None,
        help="Colorize levels (default: only when stdout is a terminal)",
    )
    color.add_argument(
        "--no-color",
        dest="color",
        action="store_false",
        help="Never colorize",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    tail_p = sub.add_parser("tail", parents=[display], help="Show the most recent records")
    tail_p.add_argument(
        "--lines", "-n",
        type=int,
        default=20,
        help="Number of records (default: 20)",
    )

    search_p = sub.add_parser("search", parents=[display], help="Filter stored records")
    search_p.add_argument("--tool", help="Exact tool name")
    search_p.add_argument("--level", type=str.lower, choices=LEVELS, help="Exact level")
    search_p.add_argument(
        "--since",
        type=_since,
        metavar="TIMESTAMP",
        help="Only records at or after this ISO-8601 time (UTC if no offset)",
    )
    search_p.add_argument("--msg", metavar="SUBSTR", help="Case-sensitive message substring")

    sub.add_parser("read", help="Dump every record as raw JSON lines")

    rotate_p = sub.add_parser("rotate", help="Force a rotation of the jsonl store")
    rotate_p.add_argument(
        "--keep",
        type=int,
        help="Rotated generations to retain (default: $SPILL_KEEP or 5)",
    )

    sub.add_parser("cull", help="Force a cull of the sqlite store")

    stats_p = sub.add_parser("stats", help="Show record counts by level and tool")
    stats_p.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    return parser


def _print_records(records, args, out) -> None:
    color = args.color if args.color is not None else out.isatty()
    formatter = get_formatter(color=color)
    for record in records:
        print(formatter(record), file=out)


def run(args, out=None) -> int:
    """Execute one command. Returns the process exit code."""
    out = out or sys.stdout
    config = load_config(tool="spill", destination=args.db, backend=args.backend)
    store = open_store(config)
    if store is None:
        print("Error: durable logging is disabled (empty destination)", file=sys.stderr)
        return 1
    logger.debug("Using %s store at %s", config.backend, store.path)

    if args.command == "tail":
        _print_records(query.tail(store, args.lines), args, out)

    elif args.command == "search":
        records = query.search(
            store, tool=args.tool, level=args.level, since=args.since, msg=args.msg
        )
        _print_records(records, args, out)

    elif args.command == "read":
        for line in query.read_raw(store):
            print(line, file=out)

    elif args.command == "rotate":
        if not isinstance(store, JsonlStore):
            print("Error: rotate applies to the jsonl backend; use cull", file=sys.stderr)
            return 1
        keep = config.keep if args.keep is None else max(0, args.keep)
        result = store.rotate(keep)
        if result.rotated:
            print(f"Rotated: {result.rotated_path}", file=out)
        else:
            print("Nothing to rotate.", file=out)
        if result.deleted:
            print(f"Purged {len(result.deleted)} file(s): {', '.join(result.deleted)}", file=out)

    elif args.command == "cull":
        if not isinstance(store, SqliteStore):
            print("Error: cull applies to the sqlite backend; use rotate", file=sys.stderr)
            return 1
        before = store.count()
        deleted = store.cull()
        print(f"Culled {deleted} of {before} row(s).", file=out)

    elif args.command == "stats":
        stats = compute_stats(query.read_all(store))
        if args.output == "json":
            print(format_stats_json(stats), file=out)
        else:
            print(format_stats_text(stats), file=out)

    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [spill] %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    try:
        return run(args)
    except sqlite3.DatabaseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (KeyboardInterrupt, BrokenPipeError):
        return 0


if __name__ == "__main__":
    sys.exit(main())
