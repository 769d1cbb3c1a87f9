from __future__ import annotations

import dataclasses
from typing import Any, Collection

from .errors import ProtocolDecodeError


def wire_name(f: dataclasses.Field) -> str:
    return f.metadata.get("wire", f.name)


def _matches(value: Any, expected: type) -> bool:
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, expected)


def read_fields(
    cls: type, payload: dict[str, Any], marker: str, skip: Collection[str] = ()
) -> dict[str, Any]:
    """Pick the scalar fields of ``cls`` out of a decoded payload.

    Keys absent from the payload are left out so the dataclass defaults
    apply; unknown keys are ignored.
    """
    values = {}
    for f in dataclasses.fields(cls):
        if f.name in skip:
            continue
        key = wire_name(f)
        if key not in payload:
            continue
        value = payload[key]
        expected = type(f.default)
        if not _matches(value, expected):
            raise ProtocolDecodeError(
                f"expected {expected.__name__}, got {type(value).__name__}",
                marker=marker,
                field=key,
            )
        values[f.name] = value
    return values
