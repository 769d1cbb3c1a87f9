from __future__ import annotations

import argparse
import enum
import re
from dataclasses import dataclass, field, fields
from typing import Any, Sequence

from .action import TransferAction
from .constants import (
    DEFAULT_BUFSIZE,
    DEFAULT_ENCODING,
    DEFAULT_TIMEOUT,
    LANG,
    MARKER_CONFIG,
    MAX_BUFSIZE,
    MIN_BUFSIZE,
    NEWLINES,
    PROTOCOL_VERSION,
    UNIX_NEWLINE,
)
from .errors import ProtocolDecodeError, UnsupportedCharacterError
from .escape import encode_escape_table
from .record import read_fields


class TmuxMode(enum.Enum):
    NO_TMUX = "none"
    NORMAL = "normal"  # inside a pane: lines wrap at the pane width
    CONTROL = "control"  # tmux -CC, output is passed through untouched


_SIZE_RE = re.compile(r"^(\d+)\s*([KMG]?)B?$", re.IGNORECASE)
_UNITS = {"": 1, "K": 1024, "M": 1024**2, "G": 1024**3}


def parse_buffer_size(text: str) -> int:
    m = _SIZE_RE.match(text.strip())
    if m is None:
        raise ValueError(f"invalid buffer size: {text!r}")
    size = int(m.group(1)) * _UNITS[m.group(2).upper()]
    if size < MIN_BUFSIZE:
        raise ValueError(f"buffer size {text!r} is less than 1K")
    if size > MAX_BUFSIZE:
        raise ValueError(f"buffer size {text!r} is greater than 1G")
    return size


def _buffer_size_arg(text: str) -> int:
    try:
        return parse_buffer_size(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def add_transfer_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-q", "--quiet", action="store_true", help="quiet (hide progress bar)")
    parser.add_argument("-y", "--overwrite", action="store_true", help="yes, overwrite existing file(s)")
    parser.add_argument("-b", "--binary", action="store_true", help="binary transfer mode, faster for binary files")
    parser.add_argument("-e", "--escape", action="store_true", help="escape all known control characters")
    parser.add_argument("-d", "--directory", action="store_true", help="transfer directories and files")
    parser.add_argument(
        "-B", "--bufsize", type=_buffer_size_arg, default=DEFAULT_BUFSIZE, help="max buffer chunk size (1K<=N<=1G)"
    )
    parser.add_argument("-t", "--timeout", type=int, default=DEFAULT_TIMEOUT, help="timeout ( N seconds ) for each buffer chunk")


@dataclass(slots=True)
class BaseArgs:
    quiet: bool = False
    overwrite: bool = False
    binary: bool = False
    escape: bool = False
    directory: bool = False
    bufsize: int = DEFAULT_BUFSIZE
    timeout: int = DEFAULT_TIMEOUT

    @classmethod
    def from_namespace(cls, ns: argparse.Namespace) -> "BaseArgs":
        return cls(**{f.name: getattr(ns, f.name) for f in fields(cls) if hasattr(ns, f.name)})


@dataclass(slots=True)
class TransferConfig:
    quiet: bool = False
    binary: bool = False
    directory: bool = False
    overwrite: bool = False
    timeout: int = DEFAULT_TIMEOUT
    newline: str = UNIX_NEWLINE
    protocol: int = 0
    max_buf_size: int = field(default=DEFAULT_BUFSIZE, metadata={"wire": "bufsize"})
    escape_codes: list[bytes] = field(default_factory=list, metadata={"wire": "escape_chars"})
    tmux_pane_columns: int = field(default=0, metadata={"wire": "tmux_pane_width"})
    tmux_output_junk: bool = False

    def update(self, other: "TransferConfig") -> None:
        for f in fields(self):
            value = getattr(other, f.name)
            setattr(self, f.name, list(value) if isinstance(value, list) else value)

    @classmethod
    def from_payload(cls, payload: dict[str, Any], encoding: str = DEFAULT_ENCODING) -> "TransferConfig":
        values = read_fields(cls, payload, MARKER_CONFIG, skip=("escape_codes",))
        newline = values.get("newline", UNIX_NEWLINE)
        if newline not in NEWLINES:
            raise ProtocolDecodeError(f"invalid newline {newline!r}", marker=MARKER_CONFIG, field="newline")
        return cls(**values, escape_codes=_decode_escape_chars(payload.get("escape_chars", []), encoding))


def _decode_escape_chars(chars: Any, encoding: str) -> list[bytes]:
    if not isinstance(chars, list) or not all(
        isinstance(c, list) and len(c) == 2 and all(isinstance(s, str) for s in c) for c in chars
    ):
        raise ProtocolDecodeError("expected a list of character pairs", marker=MARKER_CONFIG, field="escape_chars")
    try:
        return encode_escape_table(chars, encoding)
    except UnsupportedCharacterError as e:
        raise ProtocolDecodeError(str(e), marker=MARKER_CONFIG, field="escape_chars") from e


def build_config_payload(
    args: BaseArgs,
    action: TransferAction,
    escape_chars: Sequence[Sequence[str]],
    tmux_mode: TmuxMode,
    tmux_pane_columns: int,
    newline: str = UNIX_NEWLINE,
) -> dict[str, Any]:
    binary = args.binary and action.support_binary
    payload: dict[str, Any] = {
        "lang": LANG,
        "bufsize": args.bufsize,
        "timeout": args.timeout,
    }
    if args.quiet:
        payload["quiet"] = True
    if binary:
        payload["binary"] = True
        if args.escape:
            payload["escape_chars"] = [list(pair) for pair in escape_chars]
    if args.directory and action.support_directory:
        payload["directory"] = True
    if args.overwrite:
        payload["overwrite"] = True
    if tmux_mode is TmuxMode.NORMAL:
        payload["tmux_output_junk"] = True
        payload["tmux_pane_width"] = tmux_pane_columns
    if action.protocol > 0:
        payload["protocol"] = min(action.protocol, PROTOCOL_VERSION)
    if newline != UNIX_NEWLINE:
        payload["newline"] = newline
    return payload
