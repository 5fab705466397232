"""Fixed-size ring of recent log lines that can be dumped to disk."""

from __future__ import annotations

import os
import time
from collections import deque
from typing import Union

DEFAULT_CAPACITY = 128
MAX_LINE_LENGTH = 255

CRASH_LOG_HEADER = "=== Pufu OS Crash Log ==="
CRASH_LOG_FOOTER = "=== End of Log ==="


class CrashLog:
    """Keeps the most recent log lines, oldest first, up to a fixed capacity."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._lines: deque[str] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._lines.maxlen or 0

    def append(self, message: str) -> None:
        """Store a message, cut to the maximum line length."""
        self._lines.append(str(message)[:MAX_LINE_LENGTH])

    def lines(self) -> list[str]:
        """Return the stored lines, oldest first."""
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def dump(self, filename: Union[str, os.PathLike]) -> None:
        """Write the stored lines to a file with a header and a footer."""
        with open(filename, "w", encoding="utf-8") as fh:
            fh.write(f"{CRASH_LOG_HEADER}\n")
            fh.write(f"Dump Time: {int(time.time())}\n\n")
            for line in self._lines:
                fh.write(f"{line}\n")
            fh.write(f"\n{CRASH_LOG_FOOTER}\n")