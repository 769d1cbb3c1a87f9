from __future__ import annotations

import enum
import logging
from typing import Any, Optional, Sequence

from .action import ActionFormat, TransferAction
from .config import BaseArgs, TmuxMode, TransferConfig, build_config_payload
from .constants import (
    LANG,
    MARKER_ACTION,
    MARKER_CONFIG,
    MARKER_FAIL,
    PROTOCOL_VERSION,
    UNIX_NEWLINE,
    VERSION,
    WINDOWS_NEGOTIATION_PROTOCOL,
    WINDOWS_NEWLINE,
)
from .errors import ProtocolDecodeError, RemoteFailureError
from .escape import encode_escape_table
from .frame import Frame, encode_frame
from .host import Platform
from .transport import ReceiveBuffer, Writer


class NegotiationState(enum.Enum):
    # per direction: the action moves a side to SENT or RECEIVED, the config
    # exchange in that direction moves it to RESOLVED
    UNSENT = "unsent"
    SENT = "sent"
    RECEIVED = "received"
    RESOLVED = "resolved"


class TransferSession:
    """One side of the handshake.

    Calls must be serialized: one thread sends, one thread receives. Bytes
    from the terminal arrive through ``add_received_data``.
    """

    def __init__(
        self,
        writer: Writer,
        key: Optional[str] = None,
        is_server: bool = False,
        logger: Optional[logging.Logger] = None,
        platform: Optional[Platform] = None,
    ):
        self.writer = writer
        self.key = key
        self.is_server = is_server
        self.log = logger or logging.getLogger(__name__)
        self.platform = platform or Platform.detect()
        self.config = TransferConfig()
        self.windows_protocol = self.platform.is_windows
        self.buffer = ReceiveBuffer()
        self.outbound = NegotiationState.UNSENT
        self.inbound = NegotiationState.UNSENT

    @property
    def role(self) -> str:
        return "server" if self.is_server else "client"

    def add_received_data(self, data: bytes) -> None:
        self.buffer.feed(data)

    def close(self) -> None:
        self.buffer.close()

    # action

    def send_action(self, confirm: bool, remote_is_windows: bool) -> TransferAction:
        windows = self.platform.is_windows or remote_is_windows
        action = TransferAction(
            lang=LANG,
            version=VERSION,
            confirm=confirm,
            newline=WINDOWS_NEWLINE if windows else UNIX_NEWLINE,
            protocol=PROTOCOL_VERSION,
            # Windows terminals mangle raw bytes
            support_binary=not windows,
            support_directory=True,
        )
        if remote_is_windows:
            self.config.newline = WINDOWS_NEWLINE
            self.windows_protocol = True
        self._send(MARKER_ACTION, action.to_payload())
        self.outbound = NegotiationState.SENT
        return action

    def recv_action(self, timeout: Optional[float] = None) -> TransferAction:
        return self._resolve_action(self._recv(MARKER_ACTION, timeout))

    def poll_action(self) -> Optional[TransferAction]:
        frame = self._poll(MARKER_ACTION)
        return None if frame is None else self._resolve_action(frame)

    def _resolve_action(self, frame: Frame) -> TransferAction:
        action = TransferAction.from_payload(frame.payload)
        self.inbound = NegotiationState.RECEIVED
        if action.format is ActionFormat.CURRENT:
            self._adopt_newline(action.newline)
            if action.newline == WINDOWS_NEWLINE and action.protocol < WINDOWS_NEGOTIATION_PROTOCOL:
                self.windows_protocol = True
        else:
            self._adopt_newline(UNIX_NEWLINE)
        self.log.info(
            "[%s] peer action: lang=%s version=%s protocol=%d newline=%r binary=%s",
            self.role,
            action.lang,
            action.version,
            action.protocol,
            action.newline,
            action.support_binary,
        )
        return action

    def _adopt_newline(self, newline: str) -> None:
        if self.config.newline == WINDOWS_NEWLINE and newline != WINDOWS_NEWLINE:
            self.log.debug("[%s] keeping Windows newline, peer sent %r", self.role, newline)
            return
        self.config.newline = newline

    # config

    def send_config(
        self,
        args: BaseArgs,
        action: TransferAction,
        escape_chars: Sequence[Sequence[str]],
        tmux_mode: TmuxMode,
        tmux_pane_columns: int,
    ) -> TransferConfig:
        payload = build_config_payload(
            args, action, escape_chars, tmux_mode, tmux_pane_columns, self.config.newline
        )
        if "escape_chars" in payload:
            encode_escape_table(payload["escape_chars"])
        # the peer builds its copy from these bytes, so build ours the same way
        config = TransferConfig.from_payload(payload)
        self.config.update(config)
        self._send(MARKER_CONFIG, payload)
        self.outbound = NegotiationState.RESOLVED
        return config

    def recv_config(self, timeout: Optional[float] = None) -> TransferConfig:
        return self._resolve_config(self._recv(MARKER_CONFIG, timeout))

    def poll_config(self) -> Optional[TransferConfig]:
        frame = self._poll(MARKER_CONFIG)
        return None if frame is None else self._resolve_config(frame)

    def _resolve_config(self, frame: Frame) -> TransferConfig:
        config = TransferConfig.from_payload(frame.payload)
        # a frame without a newline leaves ours alone, as does a "\n" after "!\n"
        if "newline" in frame.payload:
            self._adopt_newline(config.newline)
        config.newline = self.config.newline
        self.config.update(config)
        self.inbound = NegotiationState.RESOLVED
        self.log.info(
            "[%s] config: protocol=%d binary=%s escapes=%d bufsize=%d timeout=%d",
            self.role,
            config.protocol,
            config.binary,
            len(config.escape_codes),
            config.max_buf_size,
            config.timeout,
        )
        return config

    # failure

    def send_failure(self, message: str) -> None:
        self._send(MARKER_FAIL, {"message": message})

    # frames

    def _send(self, marker: str, payload: dict[str, Any]) -> None:
        data = encode_frame(marker, payload, self.config.newline)
        self.log.debug("[%s] send %s frame; %d bytes", self.role, marker, len(data))
        self.writer.write(data)

    def _junk_tolerant(self) -> bool:
        return self.config.tmux_output_junk or self.windows_protocol

    def _recv(self, marker: str, timeout: Optional[float]) -> Frame:
        if timeout is None:
            timeout = self.config.timeout
        result = self.buffer.wait_extract(marker, timeout, junk_tolerant=self._junk_tolerant())
        if result.skipped:
            self.log.debug("[%s] skipped %d bytes before %s frame", self.role, result.skipped, marker)
        return self._expect(result.frame, marker)

    def _poll(self, marker: str) -> Optional[Frame]:
        result = self.buffer.try_extract(junk_tolerant=self._junk_tolerant())
        if result is None:
            return None
        return self._expect(result.frame, marker)

    def _expect(self, frame: Frame, marker: str) -> Frame:
        self.log.debug("[%s] recv %s frame", self.role, frame.marker)
        if frame.marker == MARKER_FAIL:
            raise RemoteFailureError(str(frame.payload.get("message", "")))
        if frame.marker != marker:
            raise ProtocolDecodeError(f"expected {marker} frame", marker=frame.marker)
        return frame


def new_transfer(
    writer: Writer,
    key: Optional[str] = None,
    is_server: bool = False,
    logger: Optional[logging.Logger] = None,
    platform: Optional[Platform] = None,
) -> TransferSession:
    return TransferSession(writer, key=key, is_server=is_server, logger=logger, platform=platform)
