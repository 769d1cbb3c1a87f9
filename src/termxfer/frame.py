from __future__ import annotations

import base64
import binascii
import json
import re
import zlib
from dataclasses import dataclass
from typing import Any, Collection, Optional

from .constants import NEGOTIATION_MARKERS, RESERVED_MARKERS, UNIX_NEWLINE
from .errors import ProtocolDecodeError

_MARKER_RE = re.compile(rb"#([A-Z][A-Z0-9]{2,}):")
_NOT_BASE64_RE = re.compile(rb"[^A-Za-z0-9+/=]")


def dump_payload(payload: dict[str, Any]) -> bytes:
    # sorted keys and no whitespace: two peers build identical bytes
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


@dataclass(frozen=True, slots=True)
class Frame:
    marker: str
    payload: dict[str, Any]

    def to_bytes(self, newline: str = UNIX_NEWLINE) -> bytes:
        body = base64.b64encode(zlib.compress(dump_payload(self.payload)))
        return b"#" + self.marker.encode("ascii") + b":" + body + newline.encode("ascii")

    @staticmethod
    def from_line(
        line: bytes,
        markers: Collection[str] = NEGOTIATION_MARKERS,
        junk_tolerant: bool = False,
    ) -> "Frame":
        m = _MARKER_RE.match(line)
        if m is None:
            raise ProtocolDecodeError("line does not start with a frame marker")
        marker = m.group(1).decode("ascii")
        if marker not in markers:
            if marker in RESERVED_MARKERS:
                raise ProtocolDecodeError("file transfer frame during negotiation", marker=marker)
            raise ProtocolDecodeError("unrecognized marker", marker=marker)

        # "!" is the Windows newline sentinel, "\r" comes from the terminal
        body = line[m.end():].rstrip(b"\r\n!")
        if junk_tolerant:
            body = _NOT_BASE64_RE.sub(b"", body)

        try:
            compressed = base64.b64decode(body, validate=True)
        except binascii.Error as e:
            raise ProtocolDecodeError(f"bad base64: {e}", marker=marker) from e
        try:
            raw = zlib.decompress(compressed)
        except zlib.error as e:
            raise ProtocolDecodeError(f"bad compressed payload: {e}", marker=marker) from e
        try:
            payload = json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise ProtocolDecodeError(f"bad payload: {e}", marker=marker) from e
        if not isinstance(payload, dict):
            raise ProtocolDecodeError(
                f"payload must be an object, got {type(payload).__name__}", marker=marker
            )
        return Frame(marker=marker, payload=payload)


@dataclass(frozen=True, slots=True)
class DecodeResult:
    frame: Frame
    remaining: bytes
    skipped: int = 0


def encode_frame(marker: str, payload: dict[str, Any], newline: str = UNIX_NEWLINE) -> bytes:
    return Frame(marker=marker, payload=payload).to_bytes(newline)


def decode_frame(
    buffer: bytes,
    markers: Collection[str] = NEGOTIATION_MARKERS,
    junk_tolerant: bool = False,
) -> Optional[DecodeResult]:
    """Peel the first complete frame line off ``buffer``.

    Returns ``None`` while no marker line is complete yet. Bytes in front of
    the marker are terminal output and are dropped (``skipped`` counts them);
    bytes after the line are handed back in ``remaining``.
    """
    m = _MARKER_RE.search(buffer)
    if m is None:
        return None
    end = buffer.find(b"\n", m.end())
    if end < 0:
        return None

    frame = Frame.from_line(bytes(buffer[m.start() : end + 1]), markers, junk_tolerant)
    return DecodeResult(frame=frame, remaining=bytes(buffer[end + 1 :]), skipped=m.start())
