from __future__ import annotations


class TermxferError(Exception):
    pass


class ProtocolDecodeError(TermxferError, ValueError):
    """A frame was found but its content is unusable."""

    def __init__(self, reason: str, marker: str | None = None, field: str | None = None):
        self.reason = reason
        self.marker = marker
        self.field = field
        where = []
        if marker is not None:
            where.append(f"marker={marker}")
        if field is not None:
            where.append(f"field={field}")
        super().__init__(f"{reason} ({', '.join(where)})" if where else reason)


class UnsupportedCharacterError(TermxferError, ValueError):
    def __init__(self, char: str, encoding: str):
        self.char = char
        self.encoding = encoding
        super().__init__(f"cannot represent {char!r} in {encoding}")


class FrameTimeoutError(TermxferError, TimeoutError):
    def __init__(self, marker: str, timeout: float | None = None, message: str | None = None):
        self.marker = marker
        self.timeout = timeout
        if message is None:
            message = f"no complete {marker} frame within {timeout}s"
        super().__init__(message)


class StreamClosedError(FrameTimeoutError):
    def __init__(self, marker: str):
        super().__init__(marker, message=f"stream closed while waiting for {marker} frame")


class RemoteFailureError(TermxferError):
    def __init__(self, message: str):
        self.message = message
        super().__init__(f"peer failed: {message}")


class ConfigMismatchError(TermxferError):
    def __init__(self, sender: object, receiver: object):
        self.sender = sender
        self.receiver = receiver
        super().__init__(f"configs differ: sender={sender!r} receiver={receiver!r}")
