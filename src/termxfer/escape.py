from __future__ import annotations

from typing import Iterable, Sequence

from .constants import DEFAULT_ENCODING, ESCAPE_LEADER
from .errors import UnsupportedCharacterError

# terminal control characters that tmux, ssh or the shell may swallow
_CONTROL_CHARS = "\x02\x10\x1b\x1d\x9d"


def build_escape_chars(escape_all: bool) -> list[tuple[str, str]]:
    """Character level escape table.

    The leader itself always comes first so it is doubled before anything
    else introduces it.
    """
    chars = [(ESCAPE_LEADER, ESCAPE_LEADER * 2), ("~", ESCAPE_LEADER + "1")]
    if escape_all:
        for i, c in enumerate(_CONTROL_CHARS):
            chars.append((c, ESCAPE_LEADER + chr(ord("A") + i)))
    return chars


def _encode_char(s: str, encoding: str) -> bytes:
    try:
        return s.encode(encoding)
    except UnicodeEncodeError as e:
        raise UnsupportedCharacterError(s[e.start : e.end], encoding) from e


def encode_escape_table(
    pairs: Iterable[Sequence[str]], encoding: str = DEFAULT_ENCODING
) -> list[bytes]:
    table = []
    for pair in pairs:
        trigger, replacement = pair
        t = _encode_char(trigger, encoding)
        r = _encode_char(replacement, encoding)
        if len(t) != 1:
            raise UnsupportedCharacterError(trigger, encoding)
        if len(r) != 2:
            raise UnsupportedCharacterError(replacement, encoding)
        table.append(t + r)
    return table


def decode_escape_table(
    table: Iterable[bytes], encoding: str = DEFAULT_ENCODING
) -> list[tuple[str, str]]:
    pairs = []
    for code in table:
        if len(code) != 3:
            raise ValueError(f"escape code must be 3 bytes, got {len(code)}")
        pairs.append((code[:1].decode(encoding), code[1:].decode(encoding)))
    return pairs


def escape_data(data: bytes, table: Sequence[bytes]) -> bytes:
    if not table:
        return data
    mapping: dict[int, bytes] = {}
    for code in table:
        mapping.setdefault(code[0], code[1:])
    out = bytearray()
    for b in data:
        sub = mapping.get(b)
        if sub is None:
            out.append(b)
        else:
            out += sub
    return bytes(out)


def unescape_data(data: bytes, table: Sequence[bytes]) -> bytes:
    if not table:
        return data
    out = bytearray()
    i = 0
    n = len(data)
    leaders = {code[1] for code in table}
    while i < n:
        b = data[i]
        if b not in leaders:
            out.append(b)
            i += 1
            continue
        pair = data[i : i + 2]
        for code in table:
            if code[1:] == pair:
                out.append(code[0])
                break
        else:
            raise ValueError(f"invalid escape sequence {bytes(pair)!r} at offset {i}")
        i += 2
    return bytes(out)
