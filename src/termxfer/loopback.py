from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Optional

from .action import TransferAction
from .config import BaseArgs, TmuxMode, TransferConfig
from .errors import ConfigMismatchError, RemoteFailureError, TermxferError
from .escape import build_escape_chars
from .host import LINUX, Platform
from .session import new_transfer
from .transport import Noise, Pipe


@dataclass(frozen=True, slots=True)
class HandshakeResult:
    action: TransferAction
    client_config: TransferConfig
    server_config: TransferConfig
    frames: int
    duration_s: float


def run_handshake(
    *,
    args: Optional[BaseArgs] = None,
    client_platform: Platform = LINUX,
    server_platform: Platform = LINUX,
    tmux_mode: TmuxMode = TmuxMode.NO_TMUX,
    tmux_pane_columns: int = 0,
    noise: Optional[Noise] = None,
    timeout: float = 5.0,
) -> HandshakeResult:
    """Negotiate between two in-memory sessions, the server in its own thread."""
    args = args or BaseArgs()

    client_out = Pipe(lambda data: server.add_received_data(data), noise)
    server_out = Pipe(lambda data: client.add_received_data(data), noise)
    client = new_transfer(client_out, is_server=False, platform=client_platform)
    server = new_transfer(server_out, is_server=True, platform=server_platform)

    server_holder: dict = {}

    def server_runner():
        try:
            action = server.recv_action(timeout)
            server_holder["action"] = action
            server.send_config(args, action, build_escape_chars(args.escape), tmux_mode, tmux_pane_columns)
        except TermxferError as e:
            server_holder["error"] = e
            server.send_failure(str(e))

    start = time.monotonic()
    t = threading.Thread(target=server_runner, daemon=True)
    t.start()

    client_config = None
    try:
        client.send_action(True, server_platform.is_windows)
        client_config = client.recv_config(timeout)
    except RemoteFailureError:
        if "error" not in server_holder:
            raise
    finally:
        t.join(timeout=timeout)

    if "error" in server_holder:
        raise server_holder["error"]
    if client_config != server.config:
        raise ConfigMismatchError(server.config, client_config)

    return HandshakeResult(
        action=server_holder["action"],
        client_config=client_config,
        server_config=server.config,
        frames=len(client_out.sent) + len(server_out.sent),
        duration_s=max(0.0, time.monotonic() - start),
    )
