from __future__ import annotations

import enum
from dataclasses import dataclass, field, fields
from typing import Any, Callable

from .constants import MARKER_ACTION, NEWLINES, UNIX_NEWLINE
from .errors import ProtocolDecodeError
from .record import read_fields, wire_name


class ActionFormat(enum.Enum):
    LEGACY = "legacy"
    CURRENT = "current"

    @classmethod
    def of(cls, protocol: int) -> "ActionFormat":
        return cls.LEGACY if protocol == 0 else cls.CURRENT


@dataclass(frozen=True, slots=True)
class TransferAction:
    lang: str = ""
    version: str = ""
    confirm: bool = False
    newline: str = UNIX_NEWLINE
    protocol: int = 0
    support_binary: bool = field(default=True, metadata={"wire": "binary"})
    support_directory: bool = field(default=True, metadata={"wire": "support_dir"})

    @property
    def format(self) -> ActionFormat:
        return ActionFormat.of(self.protocol)

    def to_payload(self) -> dict[str, Any]:
        return {wire_name(f): getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TransferAction":
        protocol = payload.get("protocol", 0)
        if not isinstance(protocol, int) or isinstance(protocol, bool) or protocol < 0:
            raise ProtocolDecodeError(
                f"invalid protocol {protocol!r}", marker=MARKER_ACTION, field="protocol"
            )
        return _DECODERS[ActionFormat.of(protocol)](payload)


def _legacy_action(payload: dict[str, Any]) -> TransferAction:
    # protocol 0 peers predate newline and capability negotiation
    values = read_fields(
        TransferAction,
        payload,
        MARKER_ACTION,
        skip=("newline", "support_binary", "support_directory"),
    )
    return TransferAction(
        **values, newline=UNIX_NEWLINE, support_binary=True, support_directory=True
    )


def _current_action(payload: dict[str, Any]) -> TransferAction:
    values = read_fields(TransferAction, payload, MARKER_ACTION)
    newline = values.get("newline", UNIX_NEWLINE)
    if newline not in NEWLINES:
        raise ProtocolDecodeError(
            f"invalid newline {newline!r}", marker=MARKER_ACTION, field="newline"
        )
    return TransferAction(**values)


_DECODERS: dict[ActionFormat, Callable[[dict[str, Any]], TransferAction]] = {
    ActionFormat.LEGACY: _legacy_action,
    ActionFormat.CURRENT: _current_action,
}
