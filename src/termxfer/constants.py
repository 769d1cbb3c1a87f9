from __future__ import annotations

LANG = "py"
VERSION = "1.0.0"

PROTOCOL_VERSION = 2
# peers at or above this version advertise Windows explicitly, older ones
# only through the newline sentinel
WINDOWS_NEGOTIATION_PROTOCOL = 2

MARKER_ACTION = "ACT"
MARKER_CONFIG = "CFG"
MARKER_FAIL = "FAIL"

NEGOTIATION_MARKERS = frozenset({MARKER_ACTION, MARKER_CONFIG, MARKER_FAIL})
# used by the file transfer loop, never valid during negotiation
RESERVED_MARKERS = frozenset({"NUM", "NAME", "SIZE", "DATA", "MD5", "SUCC", "EXIT"})

UNIX_NEWLINE = "\n"
WINDOWS_NEWLINE = "!\n"
NEWLINES = (UNIX_NEWLINE, WINDOWS_NEWLINE)

ESCAPE_LEADER = "î"
DEFAULT_ENCODING = "latin-1"

DEFAULT_TIMEOUT = 20
DEFAULT_BUFSIZE = 10 * 1024 * 1024
MIN_BUFSIZE = 1024
MAX_BUFSIZE = 1024 * 1024 * 1024
