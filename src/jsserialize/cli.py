"""CLI interface for jsserialize.

Usage:
    # Encode JSON (stdin) into an escaped JavaScript expression (stdout)
    echo '{"html": "</script>", "n": NaN}' | \
        python -m jsserialize.cli encode --space 2

    # Decode a serialized expression (stdin) into JSON (stdout)
    echo '{"s":new Set([1,2]),"d":new Date("2024-01-01T00:00:00.000Z")}' | \
        python -m jsserialize.cli decode

Options can also come from a YAML file (see jsserialize.config).
"""

from __future__ import annotations
import argparse
import json
import sys
from datetime import date
from typing import Any

from .config import create_options, load_from_yaml
from .decoder import decode
from .serializer import encode, to_iso_string
from .types import HOLE, UNDEFINED, JSFunction, JSMap, JSRegExp


def _build_options(args: argparse.Namespace):
    config = load_from_yaml(args.config) if args.config else {}
    overrides: dict[str, Any] = {}
    if args.space is not None:
        overrides["space"] = int(args.space) if args.space.isdigit() else args.space
    if args.unsafe:
        overrides["unsafe"] = True
    if args.is_json:
        overrides["is_json"] = True
    if args.ignore_function:
        overrides["ignore_function"] = True
    return create_options(config, **overrides)


def to_plain(value: Any) -> Any:
    """Flatten decoded values into something json.dump accepts."""
    if value is UNDEFINED or value is HOLE:
        return None
    if isinstance(value, JSMap):
        return [[to_plain(k), to_plain(v)] for k, v in value.items()]
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_plain(v) for v in value]
    if isinstance(value, date):
        return to_iso_string(value)
    if isinstance(value, JSRegExp):
        return f"/{value.source}/{value.flags}"
    if isinstance(value, JSFunction):
        return value.source
    return value


def cmd_encode(args: argparse.Namespace) -> None:
    """Encode JSON from stdin into a JavaScript expression."""
    value = json.loads(sys.stdin.read())
    sys.stdout.write(encode(value, _build_options(args)))
    sys.stdout.write("\n")


def cmd_decode(args: argparse.Namespace) -> None:
    """Decode a serialized JavaScript expression from stdin into JSON."""
    value = decode(sys.stdin.read())
    json.dump(to_plain(value), sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="jsserialize",
        description="Serialize values to JavaScript expressions and back",
    )
    parser.add_argument("--config", default=None, help="YAML file with encode options")

    sub = parser.add_subparsers(dest="command", required=True)
    enc = sub.add_parser("encode", help="Encode JSON (stdin) to JavaScript")
    enc.add_argument("--space", default=None, help="Indent width or string")
    enc.add_argument("--unsafe", action="store_true", help="Don't escape HTML characters")
    enc.add_argument("--is-json", action="store_true", help="Input is plain JSON (fast path)")
    enc.add_argument("--ignore-function", action="store_true", help="Drop functions")
    sub.add_parser("decode", help="Decode JavaScript (stdin) to JSON")

    args = parser.parse_args(argv)

    cmds = {
        "encode": cmd_encode,
        "decode": cmd_decode,
    }
    cmds[args.command](args)


if __name__ == "__main__":
    main()
