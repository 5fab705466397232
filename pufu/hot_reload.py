"""Watches a program file and re-parses it whenever it changes on disk."""

from __future__ import annotations

import errno
import os
from typing import Optional, Union

from pufu.parser import Program

_Signature = tuple[int, int]


class HotReload:
    """Keeps a parsed copy of a file and refreshes it when the file is modified."""

    def __init__(self, filename: Union[str, os.PathLike]) -> None:
        self.filename = os.fspath(filename)
        self.program = Program()
        self.is_running = False
        self._signature: Optional[_Signature] = None

    def _stat(self) -> Optional[_Signature]:
        try:
            st = os.stat(self.filename)
        except FileNotFoundError:
            return None
        return st.st_mtime_ns, st.st_size

    def start(self) -> None:
        """Begin watching and parse the file for the first time."""
        if self.is_running:
            raise RuntimeError(f"already watching {self.filename}")
        signature = self._stat()
        if signature is None:
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), self.filename)
        self.program.parse_file(self.filename)
        self._signature = signature
        self.is_running = True

    def check(self) -> bool:
        """Re-parse the file if it was modified; True when that happened."""
        if not self.is_running:
            raise RuntimeError(f"not watching {self.filename}")
        signature = self._stat()
        if signature is None or signature == self._signature:
            return False
        self._signature = signature
        program = Program()
        program.parse_file(self.filename)
        self.program = program
        return True

    def stop(self) -> None:
        """Stop watching; the last parsed program is kept."""
        self.is_running = False