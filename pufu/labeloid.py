"""Scene loader that reads the Meow block of a program file."""

from __future__ import annotations

import os
from enum import Enum
from typing import Any, Callable, Optional, Union

_WHITESPACE = " \t\n\v\f\r"
_LINE_LIMIT = 255

LineHandler = Callable[[Any, str], None]


class CastingMode(Enum):
    """How a file is cast; Meow scenes are loaded into the running scene."""

    MEOW_TO_PAW = 0


def parse_kv(arg: str) -> Optional[tuple[str, str]]:
    """Split ``key:value`` at the first colon; a quoted value loses its quotes."""
    key, colon, value = arg.partition(":")
    if not colon:
        return None
    if value.startswith('"'):
        value = value[1:]
        end = value.rfind('"')
        if end != -1:
            value = value[:end]
    return key, value


def strip_quotes(text: str) -> str:
    """Remove one pair of surrounding double quotes, if present."""
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return text[1:-1]
    return text


def _unquote_value(value: str) -> str:
    value = value.strip(_WHITESPACE)
    if value.startswith('"'):
        value = value[1:]
        end = value.rfind('"')
        if end != -1:
            value = value[:end]
    return value


class Labeloid:
    """Creates scene entities from implicit declarations in a Meow block."""

    def __init__(self, scene: Any, line_handler: Optional[LineHandler] = None) -> None:
        self.scene = scene
        self.line_handler = line_handler
        print("[LABELOID] Immune System Initialized.")

    def cast(self, filepath: Union[str, os.PathLike], mode: CastingMode) -> list[str]:
        """Cast a file; Meow files are loaded as a scene."""
        print(f"[LABELOID] Casting {os.fspath(filepath)} (Mode {mode.value})...")
        if mode is CastingMode.MEOW_TO_PAW:
            return self.load_scene(filepath)
        return []

    def _declare(self, clean: str) -> list[str]:
        created = []
        for segment in clean.split(","):
            _, eq, rest = segment.partition("=")
            if not eq:
                continue
            value = _unquote_value(rest)
            if value:
                print(f"[LABELOID] Implicit Declaration: Creating Entity '{value}'")
                self.scene.create_entity(value)
                created.append(value)
        return created

    def load_scene(self, filepath: Union[str, os.PathLike]) -> list[str]:
        """Read a scene file; return the names of the entities it created."""
        created: list[str] = []
        inside_init = False
        inside_meow = False
        with open(filepath, encoding="utf-8", errors="replace") as fh:
            for raw in fh:
                for start in range(0, len(raw), _LINE_LIMIT):
                    line = raw[start:start + _LINE_LIMIT]
                    if "_pufu::init" in line:
                        inside_init = True
                        continue
                    if "_pufu::stop" in line:
                        inside_init = False
                        inside_meow = False
                        continue
                    if inside_init and "_pufu::meow" in line:
                        inside_meow = True
                        continue
                    if "_pufu::paw" in line or "_pufu::claw" in line:
                        inside_meow = False
                    if not inside_meow:
                        continue

                    clean = line.strip(_WHITESPACE)
                    if "=" in clean and "new" not in clean and ".set" not in clean:
                        created.extend(self._declare(clean))
                    elif self.line_handler is not None:
                        trimmed = line.rstrip(_WHITESPACE) if clean else line
                        self.line_handler(self.scene, trimmed)
        return created