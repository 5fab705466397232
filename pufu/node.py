"""Nodes and the system that loads, schedules and single-steps them."""

from __future__ import annotations

import os
import re
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Optional, Union

from pufu.crystal import Crystal
from pufu.hot_reload import HotReload
from pufu.parser import Instruction, Opcode, Program
from pufu.terminal import Terminal

REGISTER_COUNT = 16
_MAGIC_LINES = 20
_MAGIC_MARKERS = ("_pufu::meow", "_claw::init", "_pufu::scene")
_CODE_LIMIT = 255
_INT_PREFIX = re.compile(r"[ \t\n\v\f\r]*([+-]?\d+)")

_BRANCHES: dict[Opcode, Callable[[int], bool]] = {
    Opcode.BEQ: lambda flag: flag == 0,
    Opcode.BNE: lambda flag: flag != 0,
    Opcode.BLT: lambda flag: flag == -1,
    Opcode.BGT: lambda flag: flag == 1,
}

SyscallDispatcher = Callable[["NodeSystem", "Node", Instruction], bool]


class NodeType(Enum):
    ASSEMBLER = auto()
    CRYSTAL = auto()
    TRINITY_SCENE = auto()


def _atoi(text: str) -> int:
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def _now_ms() -> int:
    return int(time.monotonic() * 1000)


def get_reg_index(text: str) -> int:
    """Register number of "rN"/"RN", or -1 when the text is not a register."""
    if text[:1] in ("r", "R"):
        return _atoi(text[1:])
    return -1


def detect_node_type(filename: Union[str, os.PathLike]) -> NodeType:
    """Pick a node type from the extension or a marker in the first lines."""
    name = os.fspath(filename)
    dot = name.rfind(".")
    if dot != -1 and name[dot:] == ".crystal":
        return NodeType.CRYSTAL
    try:
        with open(name, encoding="utf-8", errors="replace") as fh:
            for count, line in enumerate(fh):
                if count >= _MAGIC_LINES:
                    break
                if any(marker in line for marker in _MAGIC_MARKERS):
                    return NodeType.TRINITY_SCENE
    except OSError:
        pass
    return NodeType.ASSEMBLER


@dataclass
class Node:
    """One running program with its registers and scheduling state."""

    filename: str
    type: NodeType
    program: Optional[Program] = None
    crystal: Optional[Crystal] = None
    reload: Optional[HotReload] = None
    is_arbiter: bool = False
    loop_counter: int = 0
    ip: int = 0
    active: bool = True
    wake_time: int = 0
    cmp_flag: int = 0
    registers: list[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    input_buffer: str = ""
    input_pos: int = 0
    tws_id: int = 0
    ipc_queue: deque = field(default_factory=deque)

    def value_of(self, text: str) -> int:
        """A register's content, or the integer the text spells."""
        reg = get_reg_index(text)
        if 0 <= reg < REGISTER_COUNT:
            return self.registers[reg]
        return _atoi(text)


class NodeSystem:
    """All loaded nodes, the arbiter among them, and the hardware they run on."""

    def __init__(self, alu: Any = None, syscalls: Optional[SyscallDispatcher] = None,
                 terminal: Optional[Terminal] = None) -> None:
        self.alu = alu
        self.syscalls = syscalls
        self.terminal = terminal
        self.nodes: list[Node] = []
        self.arbiter: Optional[Node] = None
        if terminal is not None:
            terminal.log("pufu_so node parser initialized")

    def _alu_op(self, name: str) -> Optional[Callable[..., Any]]:
        return getattr(self.alu, name, None) if self.alu is not None else None

    def create_node(self, filename: Union[str, os.PathLike],
                    type_override: Optional[NodeType] = None) -> Node:
        """Build a node of the given or detected type, without loading it."""
        name = os.fspath(filename)
        node_type = type_override if type_override is not None else detect_node_type(name)
        node = Node(filename=name, type=node_type, program=Program())
        if node_type is NodeType.CRYSTAL:
            node.crystal = Crystal()
        node.reload = HotReload(name)
        node.tws_id = self.terminal.active() if self.terminal is not None else 0
        return node

    def load(self, filename: Union[str, os.PathLike]) -> Node:
        """Create a node, parse its program and put it first in the node list."""
        node = self.create_node(filename)
        if node.type in (NodeType.ASSEMBLER, NodeType.TRINITY_SCENE):
            try:
                node.program.parse_file(node.filename)
            except OSError:
                print(f"Error parsing file: {node.filename}")
                raise
        self.nodes.insert(0, node)
        return node

    def set_arbiter(self, node: Node) -> None:
        if node is None:
            raise ValueError("arbiter node is required")
        self.arbiter = node
        node.is_arbiter = True

    def _run_instruction(self, node: Node, inst: Instruction) -> None:
        op = inst.opcode
        source = inst.reg2 or inst.value
        if op is Opcode.MOV:
            reg = get_reg_index(inst.reg1)
            if 0 <= reg < REGISTER_COUNT:
                node.registers[reg] = node.value_of(source)
        elif op in (Opcode.ADD, Opcode.SUB):
            reg = get_reg_index(inst.reg1)
            func = self._alu_op("add" if op is Opcode.ADD else "sub")
            if 0 <= reg < REGISTER_COUNT and func is not None:
                node.registers[reg] = func(node.registers[reg], node.value_of(source))
        elif op is Opcode.CMP:
            func = self._alu_op("cmp")
            if func is not None:
                node.cmp_flag = func(node.value_of(inst.reg1), node.value_of(source))
        elif op is Opcode.JMP or (op in _BRANCHES and _BRANCHES[op](node.cmp_flag)):
            target = node.program.find_label(inst.reg1)
            if target is not None:
                node.ip = target
                return
        elif op is Opcode.SYSCALL:
            if self.syscalls is not None and self.syscalls(self, node, inst):
                return
            code = f"syscall {inst.value}"
            if inst.reg1:
                code += f" {inst.reg1}"
            func = self._alu_op("execute")
            if func is not None:
                func(code[:_CODE_LIMIT])
        node.ip += 1

    def execute(self, node: Node) -> bool:
        """Run one step of a node; False once it is inactive or finished."""
        if node is None or not node.active:
            return False
        if node.wake_time > 0:
            if _now_ms() < node.wake_time:
                return True
            node.wake_time = 0

        if node.type in (NodeType.ASSEMBLER, NodeType.TRINITY_SCENE):
            if node.program is None or node.ip >= len(node.program):
                node.active = False
                return False
            self._run_instruction(node, node.program[node.ip])
            return True
        if node.type is NodeType.CRYSTAL:
            if node.crystal is not None:
                node.crystal.step()
            return True
        return False

    def check(self) -> int:
        """Count the nodes whose watched files were modified since last checked."""
        changes = 0
        for node in self.nodes:
            if node.reload is None or not node.reload.is_running:
                continue
            if node.reload.check():
                print(f"\nNodo modificado: {node.filename}")
                if node.is_arbiter:
                    print("(Este es el nodo árbitro)")
                changes += 1
        return changes

    def close(self) -> None:
        """Stop watching every node and drop them all."""
        for node in self.nodes:
            if node.reload is not None:
                node.reload.stop()
        self.nodes.clear()
        self.arbiter = None