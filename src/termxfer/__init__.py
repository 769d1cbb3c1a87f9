"""Handshake and configuration negotiation for file transfer over a terminal.

Two peers share nothing but a terminal stream full of shell output. They
exchange self-delimited text frames to agree on:
- protocol version and newline convention (the "action")
- the full transfer configuration, escape table included (the "config")

Frames survive being interleaved with arbitrary terminal output, and
protocol 0 peers are still understood.
"""

from .constants import VERSION as __version__

__all__ = ["__version__"]
