"""Soft-FPGA engine: a netlist of two-input gates evaluated until stable."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Optional, TextIO, Union

_WHITESPACE = " \t\n\v\f\r"
_LINE_LIMIT = 255
_SHORT_TOKEN = 31
_LONG_TOKEN = 63
_MAX_ITERATIONS = 100
_INT_PREFIX = re.compile(r"[ \t\n\v\f\r]*([+-]?\d+)")

DEFAULT_STORE_PATH = "nube.txt"


class Gate(IntEnum):
    """The sixteen two-input boolean functions, by their four-bit code."""

    ZER = 0x0
    AND = 0x1
    BIE = 0x2
    TIE = 0x3
    QUA = 0x4
    STA = 0x5
    XOR = 0x6
    HEP = 0x7
    OCT = 0x8
    JOE = 0x9
    RAI = 0xA
    NOD = 0xB
    DOZ = 0xC
    AXE = 0xD
    NAD = 0xE
    ONE = 0xF


_LOGIC: dict[int, Callable[[int, int], int]] = {
    Gate.ZER: lambda a, b: 0,
    Gate.AND: lambda a, b: a & b,
    Gate.BIE: lambda a, b: a & (1 - b),
    Gate.TIE: lambda a, b: a,
    Gate.QUA: lambda a, b: (1 - a) & b,
    Gate.STA: lambda a, b: b,
    Gate.XOR: lambda a, b: a ^ b,
    Gate.HEP: lambda a, b: a | b,
    Gate.OCT: lambda a, b: 1 - (a | b),
    Gate.JOE: lambda a, b: 1 - (a ^ b),
    Gate.RAI: lambda a, b: 1 - b,
    Gate.NOD: lambda a, b: a | (1 - b),
    Gate.DOZ: lambda a, b: 1 - a,
    Gate.AXE: lambda a, b: (1 - a) | b,
    Gate.NAD: lambda a, b: 1 - (a & b),
    Gate.ONE: lambda a, b: 1,
}


def gate_type(name: str) -> Gate:
    """Map a three-letter gate name to its code; unknown names are ZER."""
    return Gate.__members__.get(name, Gate.ZER)


def gate_execute(op: int, a: int, b: int) -> int:
    """Evaluate gate ``op`` (low four bits) on inputs normalised to one bit."""
    a = 1 if a else 0
    b = 1 if b else 0
    return _LOGIC[op & 0x0F](a, b)


def hash_id(token: str) -> int:
    """DJB2 hash of a gate name, kept to a positive 31-bit integer."""
    value = 5381
    for byte in token.encode("utf-8"):
        char = byte - 256 if byte > 127 else byte
        value = (value * 33 + char) & 0xFFFFFFFFFFFFFFFF
    return value & 0x7FFFFFFF


def _is_alpha(char: str) -> bool:
    return char.isascii() and char.isalpha()


def _atoi(token: str) -> int:
    match = _INT_PREFIX.match(token)
    return int(match.group(1)) if match else 0


def _parse_input(token: str) -> tuple[int, int]:
    """A name refers to another gate; anything else is a constant value."""
    if token and _is_alpha(token[0]):
        return hash_id(token), 0
    return -1, _atoi(token)


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in _WHITESPACE:
        pos += 1
    return pos


def _scan_word(text: str, pos: int, limit: int) -> tuple[str, int]:
    end = pos
    while end < len(text) and text[end] not in _WHITESPACE and end - pos < limit:
        end += 1
    if end == pos:
        return "0", pos
    return text[pos:end], end


@dataclass
class CrystalGate:
    """One gate of a netlist with its wiring and current output."""

    id: int
    opcode: Gate
    type: Gate
    input1_id: int = -1
    input1_val: int = 0
    input2_id: int = -1
    input2_val: int = 0
    helicoid_data: Optional[str] = None
    output_val: int = 0


@dataclass
class Netlist:
    """Gates in file order and the gate whose output is the circuit's."""

    gates: list[CrystalGate] = field(default_factory=list)
    output_gate_id: int = -1

    def find(self, gate_id: int) -> Optional[CrystalGate]:
        return next((gate for gate in self.gates if gate.id == gate_id), None)

    def __len__(self) -> int:
        return len(self.gates)


def _parse_netlist_line(line: str, netlist: Netlist) -> None:
    pos = _skip_whitespace(line, 0)
    t1, pos = _scan_word(line, pos, _SHORT_TOKEN)
    pos = _skip_whitespace(line, pos)
    t2, pos = _scan_word(line, pos, _SHORT_TOKEN)
    pos = _skip_whitespace(line, pos)
    t3, pos = _scan_word(line, pos, _SHORT_TOKEN)
    pos = _skip_whitespace(line, pos)

    if pos < len(line) and line[pos] == '"':
        end = pos + 1
        while end < len(line) and line[end] != '"':
            end += 1
        if end < len(line):
            end += 1
        t4 = line[pos:end][:_LONG_TOKEN]
        pos = end
    else:
        t4, pos = _scan_word(line, pos, _LONG_TOKEN)

    pos = _skip_whitespace(line, pos)
    t5, _ = _scan_word(line, pos, _LONG_TOKEN)

    if t1 == "OUTPUT":
        netlist.output_gate_id, _ = _parse_input(t4)
        return
    if not _is_alpha(t1[0]):
        return

    gate = CrystalGate(id=hash_id(t1), opcode=gate_type(t2), type=gate_type(t3))
    if t4.startswith('"'):
        gate.helicoid_data = t4[1:-1] if len(t4) > 2 else ""
    else:
        gate.input1_id, gate.input1_val = _parse_input(t4)
    gate.input2_id, gate.input2_val = _parse_input(t5)
    netlist.gates.append(gate)


def load_netlist(filename: Union[str, os.PathLike]) -> Netlist:
    """Read a netlist; in ``.pufu`` files only the ``_claw`` block counts."""
    netlist = Netlist()
    is_pufu_file = ".pufu" in os.fspath(filename)
    inside_claw = False
    with open(filename, encoding="utf-8", errors="replace") as fh:
        for raw in fh:
            for start in range(0, len(raw), _LINE_LIMIT):
                line = raw[start:start + _LINE_LIMIT]
                if line[0] in "#\n":
                    continue
                if "_claw::init" in line:
                    inside_claw = True
                    continue
                if "_claw::end" in line:
                    return netlist
                if is_pufu_file and not inside_claw:
                    continue
                _parse_netlist_line(line, netlist)
    return netlist


class Crystal:
    """Runs a loaded netlist, storing and printing the data it carries."""

    def __init__(self, store_path: Union[str, os.PathLike] = DEFAULT_STORE_PATH,
                 out: Optional[TextIO] = None) -> None:
        self.store_path = store_path
        self.out = out if out is not None else sys.stdout
        self.active = True
        self.netlist: Optional[Netlist] = None
        self.out.write("Crystal (Soft-FPGA Engine) Initialized.\n")

    def load(self, filename: Union[str, os.PathLike]) -> Netlist:
        """Load a netlist, replacing the current one."""
        netlist = load_netlist(filename)
        self.netlist = netlist
        self.out.write(f"Crystal: Loaded netlist with {len(netlist)} gates.\n")
        return netlist

    def _store(self, data: str) -> None:
        try:
            with open(self.store_path, "w", encoding="utf-8") as fh:
                fh.write(f"nombre : {data}\n")
        except OSError:
            pass

    def _propagate(self, net: Netlist) -> bool:
        changed = False
        for gate in net.gates:
            val1 = gate.input1_val & 0xFF
            data1: Optional[str] = None
            if gate.input1_id != -1:
                source = net.find(gate.input1_id)
                if source is not None:
                    val1 = source.output_val
                    data1 = source.helicoid_data
            else:
                data1 = gate.helicoid_data

            val2 = gate.input2_val & 0xFF
            if gate.input2_id != -1:
                source = net.find(gate.input2_id)
                if source is not None:
                    val2 = source.output_val

            new_out = gate_execute(gate.type, val1, val2)

            if gate.opcode == Gate.STA and data1 is not None:
                self._store(data1)

            if new_out != gate.output_val:
                gate.output_val = new_out
                changed = True

            if gate.type == Gate.TIE and data1 is not None and gate.helicoid_data is None:
                gate.helicoid_data = data1
        return changed

    def _report(self, net: Netlist) -> None:
        for gate in net.gates:
            if gate.opcode != Gate.AXE:
                continue
            if gate.helicoid_data is not None:
                self.out.write(f"nombre : {gate.helicoid_data}\n")
                continue
            source = net.find(gate.input1_id) if gate.input1_id != -1 else None
            if source is not None and source.helicoid_data is not None:
                self.out.write(f"nombre : {source.helicoid_data}\n")
            else:
                self.out.write(str(gate.output_val))
        self.out.write("\n")

    def step(self) -> int:
        """Propagate signals until stable, report AXE gates, return the output bit."""
        net = self.netlist
        if net is None:
            return 0
        for _ in range(_MAX_ITERATIONS):
            if not self._propagate(net):
                break
        self._report(net)
        if net.output_gate_id != -1:
            out_gate = net.find(net.output_gate_id)
            return out_gate.output_val if out_gate is not None else 0
        return 0