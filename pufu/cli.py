"""Command-line bootloader: loads the arbiter node and runs all nodes."""

from __future__ import annotations

import io
import os
import signal
import sys
import threading
import time
from typing import Callable, Optional, Sequence, TextIO, Union

from pufu.logger import CrashLog
from pufu.node import NodeSystem
from pufu.terminal import RawInput, Terminal
from pufu.watchdog import Watchdog

PID_FILE = "pufu.pid"
_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
_TICK_SECONDS = 0.01


def check_pid_file(path: Union[str, os.PathLike] = PID_FILE) -> int:
    """Refuse to start if the recorded process is alive; otherwise record ours."""
    try:
        with open(path, encoding="utf-8") as fh:
            text = fh.read().split()
    except OSError:
        text = []
    if text:
        try:
            pid = int(text[0])
        except ValueError:
            pid = None
        if pid is not None:
            try:
                os.kill(pid, 0)
            except (OSError, OverflowError):
                pass
            else:
                raise RuntimeError(f"Pufu OS is already running (PID {pid}).")
    own = os.getpid()
    try:
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(str(own))
    except OSError:
        pass
    return own


def show_loading_animation(stream: Optional[TextIO] = None, delay: float = 0.1) -> None:
    """Spin a small loading indicator for twenty frames."""
    out = stream if stream is not None else sys.stdout
    out.write("\n")
    for i in range(20):
        out.write(f"\r{_FRAMES[i % len(_FRAMES)]} Cargando nodo inicial...")
        out.flush()
        if delay > 0:
            time.sleep(delay)
    out.write("\n\n")


def run_loop(system: NodeSystem, should_run: Callable[[], bool] = lambda: True) -> int:
    """Step every active node until none is left or we are told to stop."""
    iterations = 0
    while should_run():
        iterations += 1
        if system.check() > 0:
            print("Hot-reload detectado.")
        active_nodes = 0
        for node in list(system.nodes):
            if node.active:
                active_nodes += 1
                system.execute(node)
        sys.stdout.flush()
        if active_nodes == 0:
            if should_run():
                print("\nCerrando sistema (No active nodes)...")
            break
        time.sleep(_TICK_SECONDS)
    return iterations


def _stdin_fd() -> Optional[int]:
    try:
        return sys.stdin.fileno()
    except (OSError, ValueError, AttributeError, io.UnsupportedOperation):
        return None


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("Uso: pufu <bootloader.pufu>")
        return 1

    stop = threading.Event()

    def _request_stop(signum, frame):
        stop.set()

    previous = {}
    if threading.current_thread() is threading.main_thread():
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.signal(sig, _request_stop)

    crash_log = CrashLog()
    terminal = Terminal(crash_log=crash_log)
    print("\n=== Pufu Bootloader ===")
    terminal.log("Iniciando carga dinámica del socket...")

    watchdog = Watchdog()
    watchdog.start()
    raw: Optional[RawInput] = None
    try:
        try:
            check_pid_file(PID_FILE)
        except RuntimeError as exc:
            print(f"Fatal: {exc}", file=sys.stderr)
            return 1

        system = NodeSystem(terminal=terminal)

        fd = _stdin_fd()
        if fd is not None:
            raw = RawInput(fd)
            raw.enable()

        show_loading_animation()

        try:
            arbiter = system.load(args[0])
        except OSError:
            print(f"Error: No se pudo cargar el nodo inicial: {args[0]}")
            system.close()
            return 1
        system.set_arbiter(arbiter)

        terminal.log(f"Nodo inicial cargado: {arbiter.filename}")
        terminal.log("Cediendo control al nodo inicial...\n")
        system.execute(system.arbiter)

        try:
            run_loop(system, lambda: not stop.is_set())
        except Exception as exc:
            print(f"\n[Kernel] FATAL ERROR: {exc!r} caught!")
            print("[Kernel] Dumping Crash Log to 'crash.log'...")
            crash_log.append("FATAL: System Crash Triggered.")
            crash_log.dump("crash.log")
            return 1

        print("\n=== Shutting down Pufu ===")
        print("[Bootloader] Cleaning up Node System...")
        crash_log.dump("system.log")
        system.close()
        print("[Bootloader] Restoring Terminal...")
        if raw is not None:
            raw.restore()
            raw = None
        print("[Bootloader] Bye!")
        return 0
    finally:
        if raw is not None:
            raw.restore()
        watchdog.stop()
        for sig, handler in previous.items():
            signal.signal(sig, handler)


if __name__ == "__main__":
    sys.exit(main())