"""Line-oriented assembler for node programs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Iterator, Optional, Union

_WHITESPACE = " \t\n\v\f\r"
_LINE_LIMIT = 255
_OP_LIMIT = 31
_ARG_LIMIT = 127
_LABEL_NAME_LIMIT = 63


class Opcode(IntEnum):
    NOP = 0
    MOV = auto()
    ADD = auto()
    SUB = auto()
    MUL = auto()
    DIV = auto()
    CMP = auto()
    JMP = auto()
    BEQ = auto()
    BNE = auto()
    BLT = auto()
    BGT = auto()
    LABEL = auto()
    SYSCALL = auto()


class Syscall(Enum):
    UNKNOWN = auto()
    WRITE = auto()
    READ_CHAR = auto()
    CONSOLE_INPUT = auto()
    PRINT_CHAR = auto()
    CLEAR_BUFFER = auto()
    CONSOLE_CLEAR = auto()
    SET_PROMPT = auto()
    CAT = auto()
    LOG_BUFFER = auto()
    PREPEND_STRING = auto()
    SPAWN = auto()
    EXEC = auto()
    KILL = auto()
    EXIT = auto()
    SLEEP = auto()
    SHUTDOWN = auto()
    SPAWN_FROM_BUFFER = auto()
    KILL_FROM_BUFFER = auto()
    PARSE_COMMAND = auto()
    IPC_SEND = auto()
    IPC_READ = auto()
    IPC_BROADCAST = auto()
    CONFIG_GET = auto()
    TWS_SWITCH = auto()
    TWS_SWITCH_ARGS = auto()
    TRINITY_INIT = auto()
    TRINITY_STEP = auto()
    WINDOW_INIT = auto()
    WINDOW_CLEAR = auto()
    WINDOW_SWAP = auto()
    WINDOW_DRAW_MODEL = auto()
    CREATE_UI_BUTTON = auto()
    TRINITY_SET_VEC3 = auto()
    TRINITY_SET_STRING = auto()
    CREATE_UI_IMAGE = auto()
    CREATE_UI_WINDOW = auto()
    TRINITY_POLL_EVENT = auto()
    TRINITY_SET_VEC4 = auto()
    TRINITY_GET_VEC4 = auto()
    TRINITY_UPDATE_RECT = auto()
    TRINITY_LOAD_MEOW = auto()
    ITOA = auto()
    BIND_EVENT = auto()
    EXEC_BINDING = auto()
    GET_VERSION = auto()
    SYSTEM_UPDATE = auto()
    DOWNLOAD_UPDATE = auto()


_OPCODES = {
    "mov": Opcode.MOV,
    "add": Opcode.ADD,
    "sub": Opcode.SUB,
    "mul": Opcode.MUL,
    "div": Opcode.DIV,
    "cmp": Opcode.CMP,
    "jmp": Opcode.JMP,
    "beq": Opcode.BEQ,
    "bne": Opcode.BNE,
    "blt": Opcode.BLT,
    "bgt": Opcode.BGT,
    "label": Opcode.LABEL,
    "syscall": Opcode.SYSCALL,
}

_SYSCALLS = {
    "(write)": Syscall.WRITE,
    "(read_char)": Syscall.READ_CHAR,
    "(console_input)": Syscall.CONSOLE_INPUT,
    "(print_char)": Syscall.PRINT_CHAR,
    "(clear_buffer)": Syscall.CLEAR_BUFFER,
    "(console_clear)": Syscall.CONSOLE_CLEAR,
    "(set_prompt)": Syscall.SET_PROMPT,
    "(cat)": Syscall.CAT,
    "(log_buffer)": Syscall.LOG_BUFFER,
    "(prepend_string)": Syscall.PREPEND_STRING,
    "(spawn)": Syscall.SPAWN,
    "(exec)": Syscall.EXEC,
    "(kill)": Syscall.KILL,
    "(exit)": Syscall.EXIT,
    "(sleep)": Syscall.SLEEP,
    "(shutdown)": Syscall.SHUTDOWN,
    "(spawn_from_buffer)": Syscall.SPAWN_FROM_BUFFER,
    "(kill_from_buffer)": Syscall.KILL_FROM_BUFFER,
    "(parse_command)": Syscall.PARSE_COMMAND,
    "(ipc_send_from_buffer)": Syscall.IPC_SEND,
    "(ipc_read)": Syscall.IPC_READ,
    "(ipc_broadcast_from_buffer)": Syscall.IPC_BROADCAST,
    "(config_get)": Syscall.CONFIG_GET,
    "(tws_switch)": Syscall.TWS_SWITCH,
    "(tws_switch_from_args)": Syscall.TWS_SWITCH_ARGS,
    "(trinity_init)": Syscall.TRINITY_INIT,
    "(trinity_step)": Syscall.TRINITY_STEP,
    "(window_init)": Syscall.WINDOW_INIT,
    "(window_clear)": Syscall.WINDOW_CLEAR,
    "(window_swap)": Syscall.WINDOW_SWAP,
    "(window_draw_model)": Syscall.WINDOW_DRAW_MODEL,
    "(create_ui_button)": Syscall.CREATE_UI_BUTTON,
    "(trinity_set_vec3)": Syscall.TRINITY_SET_VEC3,
    "(trinity_set_string)": Syscall.TRINITY_SET_STRING,
    "(create_ui_image)": Syscall.CREATE_UI_IMAGE,
    "(create_ui_window)": Syscall.CREATE_UI_WINDOW,
    "(trinity_poll_event)": Syscall.TRINITY_POLL_EVENT,
    "(trinity_set_vec4)": Syscall.TRINITY_SET_VEC4,
    "(trinity_get_vec4)": Syscall.TRINITY_GET_VEC4,
    "(trinity_update_rect)": Syscall.TRINITY_UPDATE_RECT,
    "(trinity_load_meow)": Syscall.TRINITY_LOAD_MEOW,
    "load_meow": Syscall.TRINITY_LOAD_MEOW,
    "(itoa)": Syscall.ITOA,
    "(bind_event)": Syscall.BIND_EVENT,
    "(exec_binding)": Syscall.EXEC_BINDING,
    "(get_version)": Syscall.GET_VERSION,
    "(system_update)": Syscall.SYSTEM_UPDATE,
    "(download_update)": Syscall.DOWNLOAD_UPDATE,
}


def opcode_for(op: str) -> Opcode:
    """Map a mnemonic to its opcode; "(name)" is a syscall shorthand."""
    if op in _OPCODES:
        return _OPCODES[op]
    if op.startswith("("):
        return Opcode.SYSCALL
    return Opcode.NOP


def syscall_id(name: str) -> Syscall:
    return _SYSCALLS.get(name, Syscall.UNKNOWN)


def _is_comment_or_empty(line: str) -> bool:
    stripped = line.lstrip(_WHITESPACE)
    return not stripped or stripped.startswith("#")


def is_label(line: str) -> bool:
    """True when the first word, starting at column 0, ends with ':'."""
    if "_claw::" in line or "_pufu::" in line:
        return False
    end = 0
    while end < len(line) and line[end] not in _WHITESPACE:
        end += 1
    return end > 0 and line[end - 1] == ":"


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in _WHITESPACE:
        pos += 1
    return pos


def _take_word(text: str, pos: int) -> tuple[str, int]:
    start = pos
    while pos < len(text) and text[pos] not in _WHITESPACE:
        pos += 1
    word = text[start:pos]
    if pos < len(text):
        pos += 1
    return word, pos


def _take_argument(text: str, pos: int) -> tuple[str, int]:
    """Read a bare word or a quoted string (quotes kept), then skip one separator."""
    if text[pos] != '"':
        return _take_word(text, pos)
    start = pos
    pos += 1
    while pos < len(text) and text[pos] != '"':
        pos += 1
    if pos < len(text):
        pos += 1
    token = text[start:pos]
    if pos < len(text):
        pos += 1
    return token, pos


@dataclass
class Instruction:
    op: str = ""
    opcode: Opcode = Opcode.NOP
    reg1: str = ""
    reg2: str = ""
    value: str = ""
    is_syscall: bool = False
    syscall_id: Optional[Syscall] = None

    def mark_syscall(self, name: str) -> None:
        self.value = name[:_ARG_LIMIT]
        self.is_syscall = True
        self.syscall_id = syscall_id(self.value)


class Program:
    """Instructions of one node, with an index of its labels."""

    def __init__(self) -> None:
        self.instructions: list[Instruction] = []
        self.labels: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self.instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    def __getitem__(self, index: int) -> Instruction:
        return self.instructions[index]

    def _index_label(self, name: str, index: int) -> None:
        self.labels.setdefault(name[:_LABEL_NAME_LIMIT], index)

    def parse_line(self, line: str) -> Optional[Instruction]:
        """Parse one source line; comments and blank lines add nothing."""
        if _is_comment_or_empty(line):
            return None
        index = len(self.instructions)

        if is_label(line):
            name = line.lstrip(_WHITESPACE).split(":", 1)[0][:_ARG_LIMIT]
            inst = Instruction(op="label", opcode=Opcode.LABEL, reg1=name)
            self._index_label(name, index)
            self.instructions.append(inst)
            return inst

        text = line[:_LINE_LIMIT]
        pos = _skip_whitespace(text, 0)
        op, pos = _take_word(text, pos)
        op = op[:_OP_LIMIT]
        inst = Instruction(op=op, opcode=opcode_for(op))
        if inst.opcode is Opcode.SYSCALL and op.startswith("("):
            inst.mark_syscall(op)

        pos = _skip_whitespace(text, pos)
        if pos < len(text):
            token, pos = _take_argument(text, pos)
            inst.reg1 = token[:_ARG_LIMIT]
            if op == "syscall":
                inst.mark_syscall(token)
                inst.reg1 = ""
            if inst.opcode is Opcode.LABEL:
                self._index_label(inst.reg1, index)

        pos = _skip_whitespace(text, pos)
        if pos < len(text):
            token, pos = _take_argument(text, pos)
            if inst.is_syscall:
                inst.reg1 = token[:_ARG_LIMIT]
            else:
                inst.reg2 = token[:_ARG_LIMIT]
                if token[0] in "0123456789-":
                    inst.value = token[:_ARG_LIMIT]

        self.instructions.append(inst)
        return inst

    def parse_file(self, filename: Union[str, os.PathLike]) -> None:
        """Parse a file; lines longer than the line limit are read in pieces."""
        with open(filename, encoding="utf-8", errors="replace") as fh:
            for raw in fh:
                for start in range(0, len(raw), _LINE_LIMIT):
                    self.parse_line(raw[start:start + _LINE_LIMIT])

    def find_label(self, name: str) -> Optional[int]:
        """Index of the instruction a label points to, or None."""
        return self.labels.get(name)