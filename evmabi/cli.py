"""Command line surface for inspecting ABIs and decoding call data and logs."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, Optional, Sequence

from rich.console import Console
from rich.table import Table

from . import __version__
from .abi import Abi
from .config import load_settings
from .errors import AbiError
from .hexutil import to_hex
from .logbook import configure_logging, get_logger, log_event
from .types import Int, Uint


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="evmabi", description="Ethereum contract ABI codec")
    parser.add_argument("--version", action="store_true", help="Display version information and exit")
    parser.add_argument("--verbose", action="store_true", help="Log library diagnostics to stderr")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--strict", dest="strict", action="store_true", default=None, help="Reject unknown ABI entries")
    mode.add_argument("--lenient", dest="strict", action="store_false", help="Skip unknown ABI entries")
    subparsers = parser.add_subparsers(dest="command")

    describe = subparsers.add_parser("describe", help="Summarise functions, events and errors")
    describe.add_argument("abi", help="ABI JSON file or compiler artifact")
    describe.add_argument("--table", action="store_true", help="Render tables instead of JSON")

    selectors = subparsers.add_parser("selectors", help="List function selectors and event topics")
    selectors.add_argument("abi")

    decode_input = subparsers.add_parser("decode-input", help="Decode call data")
    decode_input.add_argument("abi")
    decode_input.add_argument("data", help="Hex call data including the selector")

    encode_input = subparsers.add_parser("encode-input", help="Encode call data")
    encode_input.add_argument("abi")
    encode_input.add_argument("function", help="Function name or full signature")
    encode_input.add_argument("args", nargs="*", help="Arguments as JSON values")

    decode_log = subparsers.add_parser("decode-log", help="Decode an event log")
    decode_log.add_argument("abi")
    decode_log.add_argument("--topic", action="append", dest="topics", default=[], help="Log topic (repeatable)")
    decode_log.add_argument("--data", default="0x", help="Hex log data")
    decode_log.add_argument("--event", default=None, help="Event name or signature (required for anonymous events)")

    decode_error = subparsers.add_parser("decode-error", help="Decode revert data")
    decode_error.add_argument("abi")
    decode_error.add_argument("data")

    return parser


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return to_hex(bytes(value))
    return str(value)


def _parse_argument(raw: str, typ: Any) -> Any:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    if isinstance(typ, (Uint, Int)) and isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            return value
    return value


def _load(args: argparse.Namespace) -> Abi:
    strict = args.strict if args.strict is not None else load_settings().strict_schema
    return Abi.from_file(args.abi, strict=strict)


def _strict_padding() -> bool:
    return load_settings().strict_padding


def _handle_describe(args: argparse.Namespace) -> Any:
    abi = _load(args)
    summary: Dict[str, Any] = {
        "functions": [
            {
                "signature": function.signature,
                "selector": to_hex(function.selector),
                "stateMutability": function.state_mutability.value,
            }
            for function in abi.functions
        ],
        "events": [
            {"signature": event.signature, "topic": to_hex(event.topic), "anonymous": event.anonymous}
            for event in abi.events
        ],
        "errors": [{"signature": error.signature, "selector": to_hex(error.selector)} for error in abi.errors],
        "constructor": abi.constructor is not None,
        "fallback": abi.has_fallback,
        "receive": abi.has_receive,
    }
    if not args.table:
        return summary
    console = Console()
    functions = Table(title="Functions")
    functions.add_column("Selector")
    functions.add_column("Signature")
    functions.add_column("Mutability")
    for row in summary["functions"]:
        functions.add_row(row["selector"], row["signature"], row["stateMutability"])
    console.print(functions)
    events = Table(title="Events")
    events.add_column("Topic")
    events.add_column("Signature")
    events.add_column("Anonymous")
    for row in summary["events"]:
        events.add_row(row["topic"], row["signature"], "yes" if row["anonymous"] else "no")
    console.print(events)
    if summary["errors"]:
        errors = Table(title="Errors")
        errors.add_column("Selector")
        errors.add_column("Signature")
        for row in summary["errors"]:
            errors.add_row(row["selector"], row["signature"])
        console.print(errors)
    return None


def _handle_selectors(args: argparse.Namespace) -> Any:
    abi = _load(args)
    return {
        "functions": {to_hex(selector): function.signature for selector, function in abi.selectors.items()},
        "events": {to_hex(topic): event.signature for topic, event in abi.topics.items()},
    }


def _handle_decode_input(args: argparse.Namespace) -> Any:
    abi = _load(args)
    function, decoded = abi.decode_input_from_hex(args.data, strict=_strict_padding())
    return {"function": function.signature, "inputs": decoded.to_dict()}


def _handle_encode_input(args: argparse.Namespace) -> Any:
    abi = _load(args)
    function = abi.function(args.function)
    if len(args.args) != len(function.inputs):
        raise ValueError(f"{function.signature} expects {len(function.inputs)} arguments, received {len(args.args)}")
    values = [_parse_argument(raw, param.type) for raw, param in zip(args.args, function.inputs)]
    data = abi.encode_input(function, values)
    return {"function": function.signature, "data": to_hex(data)}


def _handle_decode_log(args: argparse.Namespace) -> Any:
    abi = _load(args)
    event, decoded = abi.decode_log_from_hex(args.topics, args.data, event=args.event, strict=_strict_padding())
    return {"event": event.signature, "args": decoded.to_dict()}


def _handle_decode_error(args: argparse.Namespace) -> Any:
    abi = _load(args)
    error, decoded = abi.decode_error(args.data, strict=_strict_padding())
    return {"error": error.signature, "args": decoded.to_dict()}


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.version:
        print(f"evmabi {__version__}")
        return 0
    if args.command is None:
        parser.print_help()
        return 1
    if args.verbose:
        configure_logging("DEBUG")
        get_logger(console=True)
    else:
        configure_logging(load_settings().log_level)
    handlers = {
        "describe": _handle_describe,
        "selectors": _handle_selectors,
        "decode-input": _handle_decode_input,
        "encode-input": _handle_encode_input,
        "decode-log": _handle_decode_log,
        "decode-error": _handle_decode_error,
    }
    handler = handlers[args.command]
    try:
        result = handler(args)
    except (AbiError, FileNotFoundError, ValueError) as exc:
        log_event("cli", args.command, status="failure", abi=args.abi, error=str(exc))
        sys.stderr.write(f"error: {exc}\n")
        return 2
    log_event("cli", args.command, abi=args.abi)
    if result is not None:
        json.dump(result, sys.stdout, indent=2, default=_json_default)
        sys.stdout.write("\n")
    return 0


__all__ = ["main"]
