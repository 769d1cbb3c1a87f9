from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Collection, Iterator, Optional, Protocol

from .constants import NEGOTIATION_MARKERS
from .errors import FrameTimeoutError, StreamClosedError
from .frame import DecodeResult, decode_frame


class Writer(Protocol):
    def write(self, data: bytes) -> object: ...


class ReceiveBuffer:
    """Bytes received from the terminal that no frame has consumed yet.

    Everything up to the last complete line that holds no frame is terminal
    chatter and is dropped; an incomplete trailing line is always kept.
    """

    def __init__(self) -> None:
        self._data = bytearray()
        self._closed = False
        self._cond = threading.Condition()

    def __len__(self) -> int:
        with self._cond:
            return len(self._data)

    def peek(self) -> bytes:
        with self._cond:
            return bytes(self._data)

    def feed(self, data: bytes) -> None:
        with self._cond:
            self._data += data
            self._cond.notify_all()

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def try_extract(
        self, markers: Collection[str] = NEGOTIATION_MARKERS, junk_tolerant: bool = False
    ) -> Optional[DecodeResult]:
        with self._cond:
            result = decode_frame(self._data, markers, junk_tolerant)
            if result is None:
                cut = self._data.rfind(b"\n") + 1
                if cut:
                    del self._data[:cut]
                return None
            del self._data[: len(self._data) - len(result.remaining)]
            return result

    def wait_extract(
        self,
        marker: str,
        timeout: Optional[float],
        markers: Collection[str] = NEGOTIATION_MARKERS,
        junk_tolerant: bool = False,
    ) -> DecodeResult:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while True:
                result = self.try_extract(markers, junk_tolerant)
                if result is not None:
                    return result
                if self._closed:
                    raise StreamClosedError(marker)
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    raise FrameTimeoutError(marker, timeout)
                self._cond.wait(remaining)


@dataclass(frozen=True, slots=True)
class Noise:
    """What a real terminal does to the byte stream between two peers."""

    chatter: bytes = b""
    fragment_size: int = 0
    delay_ms: int = 0

    def fragments(self, data: bytes) -> Iterator[bytes]:
        if self.fragment_size <= 0:
            yield data
            return
        for i in range(0, len(data), self.fragment_size):
            yield data[i : i + self.fragment_size]

    def sleep_if_needed(self) -> None:
        if self.delay_ms > 0:
            time.sleep(self.delay_ms / 1000.0)


class Pipe:
    """In-memory one way transport that delivers into a peer's receive path."""

    def __init__(self, deliver: Callable[[bytes], None], noise: Noise | None = None):
        self.deliver = deliver
        self.noise = noise or Noise()
        self.sent: list[bytes] = []

    def write(self, data: bytes) -> int:
        self.sent.append(data)
        if self.noise.chatter:
            self.deliver(self.noise.chatter)
        for piece in self.noise.fragments(data):
            self.noise.sleep_if_needed()
            self.deliver(piece)
        return len(data)
