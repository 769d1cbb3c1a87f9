from __future__ import annotations

import sys
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Platform:
    is_windows: bool = False

    @classmethod
    def detect(cls) -> "Platform":
        return cls(is_windows=sys.platform == "win32")


LINUX = Platform(is_windows=False)
WINDOWS = Platform(is_windows=True)
