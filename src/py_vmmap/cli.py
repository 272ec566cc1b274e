"""Command-line front end: ``py-vmmap``.

Prints the memory map of a process, optionally narrowed by address,
path, or permissions::

    py-vmmap                       # the calling process
    py-vmmap --pid 1234 --perms r-x
    py-vmmap --address 0x7f00deadbeef
    py-vmmap --path libc --summary

The helpers (``parse_address``, ``run_query``) are pure and return
values; ``main`` is the thin I/O wrapper that prints and picks the exit
status.
"""

import argparse
import sys
from collections.abc import Sequence

from py_vmmap.config import ParserConfig
from py_vmmap.parser import ProcessMemoryParser, Regions
from py_vmmap.permissions import MemoryPermissions
from py_vmmap.report import format_memory_map, summarize
from py_vmmap.result import Result


def parse_address(text: str) -> int:
    """Parse ``0x``-prefixed hex or plain decimal into an address.

    Raises:
        ValueError: If *text* is neither, or is negative.

    """
    value = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
    if value < 0:
        msg = f"Address must not be negative: {text}"
        raise ValueError(msg)
    return value


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the argument parser for ``py-vmmap``."""
    ap = argparse.ArgumentParser(
        prog="py-vmmap",
        description="Show the memory map of a process.",
    )
    ap.add_argument("--pid", type=int, default=None, help="target process (default: self)")
    query = ap.add_mutually_exclusive_group()
    query.add_argument("--address", type=parse_address, help="regions containing this address")
    query.add_argument("--path", help="regions whose pathname contains this text")
    query.add_argument("--perms", help="regions having at least these perms, e.g. r-x-")
    ap.add_argument("--exact", action="store_true", help="with --path, match the whole path")
    ap.add_argument("--limit", type=int, default=-1, help="rows to print (default: all)")
    ap.add_argument("--summary", action="store_true", help="print totals instead of rows")
    return ap


def run_query(parser: ProcessMemoryParser, args: argparse.Namespace) -> Result[Regions]:
    """Dispatch the query selected on the command line."""
    if args.address is not None:
        return parser.find_regions_containing(args.address, args.pid)
    if args.path is not None:
        return parser.find_regions_by_path(args.path, args.pid, exact_match=args.exact)
    if args.perms is not None:
        # Pad so "r-x" is read as three flags plus an unset fourth.
        perms = MemoryPermissions.from_string(args.perms.ljust(4, "-"))
        return parser.find_regions_by_permissions(perms, args.pid)
    return parser.parse_process(args.pid)


def main(argv: Sequence[str] | None = None) -> int:
    """Run ``py-vmmap``; return the process exit status."""
    args = build_arg_parser().parse_args(argv)
    parser = ProcessMemoryParser(config=ParserConfig.from_env())

    result = run_query(parser, args)
    if result.has_error:
        phrase = ProcessMemoryParser.error_string(result.error)
        print(f"py-vmmap: {phrase}: {result.error_message}", file=sys.stderr)  # noqa: T201
        return 1

    regions = result.value
    if args.summary:
        print(summarize(regions))  # noqa: T201
    else:
        print(format_memory_map(regions, args.limit))  # noqa: T201
    return 0


def run() -> None:
    """Console entry point."""
    sys.exit(main())
