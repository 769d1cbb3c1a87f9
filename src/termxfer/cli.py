from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from typing import Any

from .config import BaseArgs, TmuxMode, TransferConfig, add_transfer_arguments
from .constants import DEFAULT_ENCODING
from .errors import ProtocolDecodeError, TermxferError, UnsupportedCharacterError
from .escape import build_escape_chars, encode_escape_table
from .frame import decode_frame
from .host import Platform
from .loopback import run_handshake
from .transport import Noise


def _emit(payload: Any, as_json: bool) -> None:
    print(json.dumps(payload, indent=2) if as_json else payload)


def config_summary(config: TransferConfig) -> dict[str, Any]:
    summary = dataclasses.asdict(config)
    summary["escape_codes"] = [code.hex() for code in config.escape_codes]
    return summary


def cmd_decode(args: argparse.Namespace) -> int:
    line = args.line if args.line is not None else sys.stdin.read()
    data = line.encode("utf-8")
    if not data.endswith(b"\n"):
        data += b"\n"
    try:
        result = decode_frame(data)
    except ProtocolDecodeError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    if result is None:
        print("error: no frame found", file=sys.stderr)
        return 1
    _emit({"marker": result.frame.marker, "payload": result.frame.payload}, args.json)
    return 0


def cmd_escape_table(args: argparse.Namespace) -> int:
    try:
        table = encode_escape_table(build_escape_chars(args.all), args.encoding)
    except UnsupportedCharacterError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    if args.json:
        _emit([code.hex() for code in table], True)
    else:
        for code in table:
            print(f"{code[:1].hex()} -> {code[1:].hex()}")
    return 0


def cmd_handshake(args: argparse.Namespace) -> int:
    try:
        r = run_handshake(
            args=BaseArgs.from_namespace(args),
            client_platform=Platform(is_windows=args.client_windows),
            server_platform=Platform(is_windows=args.server_windows),
            tmux_mode=TmuxMode(args.tmux),
            tmux_pane_columns=args.tmux_columns,
            noise=Noise(
                chatter=args.chatter.encode("utf-8"),
                fragment_size=args.fragment_size,
                delay_ms=args.delay_ms,
            ),
            timeout=args.wait,
        )
    except TermxferError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    payload = {
        "role": "handshake",
        "protocol": r.action.protocol,
        "frames": r.frames,
        "seconds": r.duration_s,
        "config": config_summary(r.server_config),
    }
    _emit(payload, args.json)
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="termxfer", description="Terminal file transfer handshake tools.")
    p.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x: argparse.ArgumentParser) -> None:
        x.add_argument("--json", action="store_true")

    decode = sub.add_parser("decode", help="decode a frame line (argument or stdin)")
    add_common(decode)
    decode.add_argument("line", nargs="?")
    decode.set_defaults(func=cmd_decode)

    escape = sub.add_parser("escape-table", help="print the escape table as hex")
    add_common(escape)
    escape.add_argument("--all", action="store_true", help="escape all known control characters")
    escape.add_argument("--encoding", default=DEFAULT_ENCODING)
    escape.set_defaults(func=cmd_escape_table)

    hs = sub.add_parser("handshake", help="negotiate between two local peers")
    add_common(hs)
    add_transfer_arguments(hs)
    hs.add_argument("--client-windows", action="store_true")
    hs.add_argument("--server-windows", action="store_true")
    hs.add_argument("--tmux", choices=[m.value for m in TmuxMode], default=TmuxMode.NO_TMUX.value)
    hs.add_argument("--tmux-columns", type=int, default=0)
    hs.add_argument("--chatter", default="", help="terminal output injected before every frame")
    hs.add_argument("--fragment-size", type=int, default=0)
    hs.add_argument("--delay-ms", type=int, default=0, help="delay before delivering each fragment")
    hs.add_argument("--wait", type=float, default=5.0, help="seconds to wait for each frame")
    hs.set_defaults(func=cmd_handshake)

    args = p.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
