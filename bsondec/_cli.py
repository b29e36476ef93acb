"""bsondec command-line interface.

Usage:
    python3 -m bsondec dump [--input file.bson] [--hex] [--max-depth N]
    python3 -m bsondec check [--input file.bson] [--hex] [--max-depth N]
    python3 -m bsondec version

Input is read from stdin when --input is omitted.  With --hex the input is
hex text (whitespace ignored) rather than raw bytes.  The default nesting
limit comes from $BSONDEC_MAX_DEPTH when set.
"""

from __future__ import annotations

import argparse
import binascii
import json
import os
import sys
from typing import List, Optional

from . import (
    DEFAULT_MAX_DEPTH,
    BsonError,
    __version__,
    parse,
    to_json_value,
)


def _default_max_depth() -> int:
    raw = os.environ.get("BSONDEC_MAX_DEPTH")
    if not raw:
        return DEFAULT_MAX_DEPTH
    try:
        return int(raw)
    except ValueError:
        print("bsondec: ignoring non-integer BSONDEC_MAX_DEPTH={!r}".format(raw),
              file=sys.stderr)
        return DEFAULT_MAX_DEPTH


def _add_input_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--input", "-i", metavar="FILE",
                   help="Read the document from FILE instead of stdin")
    p.add_argument("--hex", action="store_true",
                   help="Input is hex text rather than raw bytes")
    p.add_argument("--max-depth", type=int, default=_default_max_depth(),
                   metavar="N", help="Maximum nesting depth (default: %(default)s)")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bsondec",
        description="bsondec — decode and inspect binary documents",
    )
    sub = parser.add_subparsers(dest="command")

    # ── dump ──
    dump_p = sub.add_parser("dump", help="Print the decoded tree as JSON")
    _add_input_args(dump_p)

    # ── check ──
    check_p = sub.add_parser("check", help="Validate and print a one-line summary")
    _add_input_args(check_p)

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str], as_hex: bool) -> bytes:
    """Read document bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            raw = f.read()
    else:
        if sys.stdin.isatty():
            print("bsondec: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
        raw = sys.stdin.buffer.read()
    if as_hex:
        return binascii.unhexlify(b"".join(raw.split()))
    return raw


def _cmd_dump(args: argparse.Namespace) -> None:
    raw = _read_input(args.input, args.hex)
    with parse(raw, max_depth=args.max_depth) as doc:
        print(json.dumps(to_json_value(doc), indent=2, allow_nan=False))


def _cmd_check(args: argparse.Namespace) -> None:
    raw = _read_input(args.input, args.hex)
    with parse(raw, max_depth=args.max_depth) as doc:
        print("ok declared_size={} elements={}".format(doc.declared_size, len(doc)))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"bsondec {__version__}")
        return

    if args.max_depth < 0:
        parser.error("--max-depth must be non-negative")

    try:
        if args.command == "dump":
            _cmd_dump(args)
        elif args.command == "check":
            _cmd_check(args)
    except BsonError as e:
        print(f"bsondec: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except binascii.Error as e:
        print(f"bsondec: bad hex input: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
