"""Console output with per-workspace history, and raw keyboard input."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import Optional, TextIO

from pufu.logger import CrashLog

MAX_TWS = 10
HISTORY_SIZE = 8192
BOOT_LOG_SIZE = 4096
MAX_MESSAGE_LENGTH = 1023
MAX_PROMPT_LENGTH = 63
MAX_BUFFER_LENGTH = 255

DEFAULT_PROMPT = "Pufu> "
CLEAR_LINE = "\r\033[K"
CLEAR_SCREEN = "\033[H\033[J"


@dataclass
class Workspace:
    """One terminal workspace: its prompt, pending input and history."""

    id: int
    prompt: str = DEFAULT_PROMPT
    input_buffer: str = ""
    history: str = ""

    def record(self, message: str) -> bool:
        """Append a message to the history if it still fits."""
        if len(self.history) + len(message) + 2 < HISTORY_SIZE:
            self.history += message + "\r\n"
            return True
        return False


class Terminal:
    """Logging console with several switchable workspaces."""

    def __init__(self, stream: Optional[TextIO] = None,
                 crash_log: Optional[CrashLog] = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.crash_log = crash_log
        self.prompt = ""
        self.input_buffer = ""
        self.workspaces = [Workspace(index) for index in range(MAX_TWS)]
        self.workspaces[0].prompt = self.prompt
        self.workspaces[0].input_buffer = self.input_buffer
        self._active = 0
        self._boot_log = ""

    def _write(self, text: str) -> None:
        self.stream.write(text)

    def _show(self, message: str) -> None:
        self._write(CLEAR_LINE)
        self._write(f"{message}\r\n")
        self._write(f"{self.prompt}{self.input_buffer}")
        self.stream.flush()

    def set_prompt(self, prompt: str) -> None:
        self.prompt = prompt[:MAX_PROMPT_LENGTH]
        self.workspaces[self._active].prompt = self.prompt

    def update_buffer(self, buffer: str) -> None:
        self.input_buffer = buffer[:MAX_BUFFER_LENGTH]

    def log(self, message: str) -> None:
        """Print a message above the prompt and record it everywhere."""
        message = str(message)[:MAX_MESSAGE_LENGTH]
        if self.crash_log is not None:
            self.crash_log.append(message)
        if len(self._boot_log) + len(message) + 2 < BOOT_LOG_SIZE:
            self._boot_log += message + "\n"
        self.workspaces[self._active].record(message)
        self._show(message)

    def tws_log(self, tws_id: int, message: str) -> None:
        """Record a message in one workspace; print it only if it is active."""
        message = str(message)[:MAX_MESSAGE_LENGTH]
        if 0 <= tws_id < MAX_TWS:
            self.workspaces[tws_id].record(message)
        if tws_id == self._active:
            self._show(message)

    def switch(self, tws_id: int) -> None:
        """Make another workspace active and redraw it."""
        if not 0 <= tws_id < MAX_TWS:
            return
        current = self.workspaces[self._active]
        current.prompt = self.prompt
        current.input_buffer = ""

        self._active = tws_id
        target = self.workspaces[tws_id]
        self.prompt = target.prompt
        self.input_buffer = target.input_buffer

        self.clear_screen()
        self._write(target.history)
        self._write(f"{self.prompt}{self.input_buffer}")
        self.stream.flush()

    def clear_screen(self) -> None:
        self._write(CLEAR_SCREEN)
        self.stream.flush()

    def boot_logs(self) -> str:
        return self._boot_log

    def active(self) -> int:
        return self._active


class RawInput:
    """Non-blocking, unechoed single-key input from a terminal descriptor."""

    def __init__(self, fd: Optional[int] = None) -> None:
        self.fd = sys.stdin.fileno() if fd is None else fd
        self.configured = False
        self._saved_attrs = None
        self._saved_flags: Optional[int] = None

    def enable(self) -> None:
        if self.configured:
            return
        if not os.isatty(self.fd):
            print("[Terminal] WARN: Not a TTY. Skipping raw mode.")
            self.configured = True
            return

        import fcntl
        import termios

        self._saved_attrs = termios.tcgetattr(self.fd)
        attrs = termios.tcgetattr(self.fd)
        attrs[3] &= ~(termios.ICANON | termios.ECHO)
        attrs[6][termios.VMIN] = 0
        attrs[6][termios.VTIME] = 0
        termios.tcsetattr(self.fd, termios.TCSANOW, attrs)

        flags = fcntl.fcntl(self.fd, fcntl.F_GETFL)
        self._saved_flags = flags
        fcntl.fcntl(self.fd, fcntl.F_SETFL, flags | os.O_NONBLOCK)
        self.configured = True

    def restore(self) -> None:
        if not self.configured:
            return
        if self._saved_attrs is not None:
            import fcntl
            import termios

            termios.tcsetattr(self.fd, termios.TCSANOW, self._saved_attrs)
            flags = fcntl.fcntl(self.fd, fcntl.F_GETFL)
            fcntl.fcntl(self.fd, fcntl.F_SETFL, flags & ~os.O_NONBLOCK)
            self._saved_attrs = None
            self._saved_flags = None
        self.configured = False

    def get_key(self) -> int:
        """Return the next byte typed, or 0 when none is waiting."""
        try:
            data = os.read(self.fd, 1)
        except (BlockingIOError, InterruptedError):
            return 0
        return data[0] if data else 0

    def __enter__(self) -> "RawInput":
        self.enable()
        return self

    def __exit__(self, *args) -> None:
        self.restore()