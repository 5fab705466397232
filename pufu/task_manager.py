"""Scheduler that reacts to modified nodes by re-running the arbiter."""

from __future__ import annotations

from pufu.node import NodeSystem


class TaskManager:
    """Arbiter loop: checks for node changes and re-executes the arbiter."""

    def __init__(self, system: NodeSystem) -> None:
        if system is None:
            raise ValueError("a node system is required")
        self.system = system
        self.active = True
        print("TaskManager (Arbiter) Initialized.")

    def update(self) -> int:
        """Run one scheduling round; return how many nodes changed."""
        if not self.active:
            return 0
        changes = self.system.check()
        if changes > 0:
            print("TaskManager: Detected changes, re-executing arbiter node.")
            if self.system.arbiter is not None:
                self.system.execute(self.system.arbiter)
        return changes