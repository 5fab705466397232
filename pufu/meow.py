"""Interpreter for Meow UI scripts that build nodes on a scene engine."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import IntEnum, auto
from typing import Optional, Protocol, Union

_WHITESPACE = " \t\n\v\f\r"
_MAX_VARS = 64
CLICK_EVENT = 4

_FLOAT = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)

_NAMED_COLORS = {
    "white": (1.0, 1.0, 1.0),
    "black": (0.0, 0.0, 0.0),
    "orange": (1.0, 0.5, 0.0),
    "gray": (0.2, 0.2, 0.2),
}


class UiNodeType(IntEnum):
    UI_BUTTON = auto()
    UI_WINDOW = auto()
    UI_IMAGE = auto()


class _Engine(Protocol):
    def create_node(self, name: str, node_type: UiNodeType) -> int: ...

    def set_vec4(self, node_id: int, key: str, x: float, y: float,
                 z: float, w: float) -> None: ...

    def set_vec3(self, node_id: int, key: str, x: float, y: float,
                 z: float) -> None: ...

    def set_string(self, node_id: int, key: str, value: str) -> None: ...

    def bind_event(self, node_id: int, event: int, handler: str) -> None: ...


def _skip_ws(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in _WHITESPACE:
        pos += 1
    return pos


def _scan_floats(text: str, separator: Optional[str], limit: int) -> list[float]:
    """Read up to ``limit`` floats joined by ``separator`` (None: whitespace)."""
    values: list[float] = []
    pos = 0
    while len(values) < limit:
        if values and separator is not None:
            if text[pos:pos + 1] != separator:
                break
            pos += 1
        match = _FLOAT.match(text, _skip_ws(text, pos))
        if match is None:
            break
        values.append(float(match.group()))
        pos = match.end()
    return values


def parse_vec4(text: str) -> list[float]:
    """Parse up to four numbers from "x y z w", "x,y,z,w" or "(x,y,z)"."""
    if text.startswith("("):
        text = text[1:]
    values = _scan_floats(text, None, 4)
    if "," in text:
        commas = _scan_floats(text, ",", 4)
        values = commas + values[len(commas):]
    return values


def _fill(values: list[float], defaults: list[float]) -> list[float]:
    return values + defaults[len(values):]


def apply_method(engine: _Engine, node_id: int, key: str, value: str) -> None:
    """Apply one ``key: value`` setter to a node."""
    if key in ("rect", "rectangle"):
        if "*" in value:
            w, h = _fill(_scan_floats(value, "*", 2), [0.0, 0.0])
            engine.set_vec4(node_id, "rect", 0.0, 0.0, w, h)
        else:
            x, y, w, h = _fill(parse_vec4(value), [0.0] * 4)
            engine.set_vec4(node_id, "rect", x, y, w, h)
    elif key == "color":
        if value in _NAMED_COLORS:
            r, g, b = _NAMED_COLORS[value]
        else:
            values = parse_vec4(value)
            r, g, b = _fill(values[:3], [0.0] * 3)
            if len(values) == 4:
                r = values[3]
        engine.set_vec3(node_id, "color", r, g, b)
    elif key in ("label", "string"):
        engine.set_string(node_id, "label", value)
    elif key == "onclick":
        engine.bind_event(node_id, CLICK_EVENT, value)


@dataclass
class _Variable:
    value: Optional[str]
    node_id: int = -1


class MeowInterpreter:
    """Runs Meow statements: ``name = "alias"`` and ``name.method(key: value)``."""

    def __init__(self, engine: _Engine) -> None:
        self.engine = engine
        self.variables: dict[str, _Variable] = {}
        self._src = ""
        self._pos = 0

    # --- lexer ---

    def _peek(self) -> str:
        return self._src[self._pos] if self._pos < len(self._src) else ""

    def _skip_space(self) -> None:
        while self._pos < len(self._src) and (
            self._src[self._pos] in _WHITESPACE or self._src[self._pos] == ","
        ):
            self._pos += 1

    def _match(self, char: str) -> bool:
        self._skip_space()
        if self._peek() == char:
            self._pos += 1
            return True
        return False

    def _string(self) -> Optional[str]:
        self._skip_space()
        if self._peek() != '"':
            return None
        self._pos += 1
        start = self._pos
        while self._pos < len(self._src) and self._src[self._pos] != '"':
            self._pos += 1
        text = self._src[start:self._pos]
        if self._pos < len(self._src):
            self._pos += 1
        return text

    def _identifier(self) -> Optional[str]:
        self._skip_space()
        first = self._peek()
        if not first or not (first == "_" or (first.isascii() and first.isalpha())):
            return None
        start = self._pos
        while self._pos < len(self._src) and (
            self._src[self._pos] == "_"
            or (self._src[self._pos].isascii() and self._src[self._pos].isalnum())
        ):
            self._pos += 1
        return self._src[start:self._pos]

    def _value(self) -> str:
        self._skip_space()
        if self._peek() == '"':
            return self._string() or ""
        start = self._pos
        if self._peek() == "(":
            while self._pos < len(self._src) and self._src[self._pos] != ")":
                self._pos += 1
            if self._pos < len(self._src):
                self._pos += 1
            return self._src[start:self._pos]
        while self._pos < len(self._src) and self._src[self._pos] not in ",)" \
                and self._src[self._pos] not in _WHITESPACE:
            self._pos += 1
        return self._src[start:self._pos]

    # --- execution ---

    def _set_var(self, name: str, value: Optional[str], node_id: int) -> None:
        var = self.variables.get(name)
        if var is None:
            if len(self.variables) >= _MAX_VARS:
                return
            self.variables[name] = _Variable(value, node_id)
        else:
            var.value = value
            var.node_id = node_id

    def _call(self, ident: str, method: str, key: str, value: str) -> None:
        var = self.variables.get(ident)
        node_id = var.node_id if var is not None else -1
        obj_name = var.value if var is not None and var.value is not None else ident
        if method == "create":
            if value == "Window":
                node_type = UiNodeType.UI_WINDOW
            elif value == "Image":
                node_type = UiNodeType.UI_IMAGE
            else:
                node_type = UiNodeType.UI_BUTTON
            node_id = self.engine.create_node(obj_name, node_type)
            if var is not None:
                var.node_id = node_id
        elif method == "add":
            pass
        elif node_id != -1:
            apply_method(self.engine, node_id, key, value)

    def _statement(self) -> None:
        ident = self._identifier()
        if ident is None:
            self._pos += 1
            return
        self._skip_space()
        if self._match("="):
            self._set_var(ident, self._value(), -1)
        elif self._match("."):
            method = self._identifier()
            if method is None or not self._match("("):
                return
            while self._pos < len(self._src) and self._src[self._pos] != ")":
                before = self._pos
                key = self._identifier()
                if key is not None and self._match(":"):
                    self._call(ident, method, key, self._value())
                self._skip_space()
                if self._pos == before:
                    # Nothing parseable here; step over it rather than stall.
                    self._pos += 1
            self._match(")")

    def run(self, source: str) -> int:
        """Run a script from scratch; return the last variable's node id, or 0."""
        self.variables.clear()
        self._src = source
        self._pos = 0
        while self._pos < len(self._src):
            self._skip_space()
            if self._pos >= len(self._src):
                break
            if self._src[self._pos] == "#":
                while self._pos < len(self._src) and self._src[self._pos] != "\n":
                    self._pos += 1
                continue
            self._statement()
        if not self.variables:
            return 0
        last = next(reversed(self.variables.values()))
        return last.node_id if last.node_id > 0 else 0

    def load(self, filename: Union[str, os.PathLike]) -> int:
        """Run the script in a file."""
        with open(filename, "rb") as fh:
            source = fh.read().decode("utf-8", errors="replace")
        return self.run(source)