"""Background timer that runs a rollback when it is not disarmed in time."""

from __future__ import annotations

import os
import threading
from typing import Callable, Optional

Rollback = Callable[[], None]


class Watchdog:
    """A single-shot timer on its own thread; arm it, then disarm before it barks."""

    def __init__(self, rollback: Optional[Rollback] = None) -> None:
        self._rollback = rollback
        self._cond = threading.Condition()
        self._active = False
        self._timeout_ms = 0
        self._stopping = False
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def armed(self) -> bool:
        with self._cond:
            return self._active

    def start(self) -> None:
        """Start the watchdog thread."""
        if self._thread is not None:
            raise RuntimeError("watchdog already started")
        self._stopping = False
        self._thread = threading.Thread(target=self._loop, name="watchdog", daemon=True)
        self._thread.start()
        print("[System] Watchdog initialized.")

    def _loop(self) -> None:
        while True:
            with self._cond:
                while not self._active and not self._stopping:
                    self._cond.wait()
                if self._stopping:
                    return
                ms = self._timeout_ms
                woken = self._cond.wait(ms / 1000.0)
                if woken or not self._active or self._stopping:
                    continue
                self._active = False
                rollback = self._rollback
            print(f"[Watchdog] BARK! Timeout reached ({ms} ms). Executing Rollback...")
            if rollback is None:
                print("[Watchdog] FATAL: No rollback function set. Aborting.")
                os._exit(1)
            rollback()

    def arm(self, timeout_ms: int) -> None:
        """Start (or restart) the countdown."""
        with self._cond:
            self._timeout_ms = timeout_ms
            self._active = True
            self._cond.notify_all()

    def disarm(self) -> None:
        """Cancel the countdown."""
        with self._cond:
            self._active = False
            self._cond.notify_all()

    def set_rollback(self, rollback: Optional[Rollback]) -> None:
        with self._cond:
            self._rollback = rollback

    def stop(self) -> None:
        """Stop the thread and wait for it to finish."""
        with self._cond:
            self._stopping = True
            self._cond.notify_all()
        if self._thread is not None:
            self._thread.join()
            self._thread = None