"""Optional ANSI colouring of printed fields."""

from __future__ import annotations

import os
import sys
from enum import Enum, IntEnum


class ColorMode(str, Enum):
    """When to colour output."""

    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"

    @classmethod
    def parse(cls, when: str | ColorMode) -> ColorMode:
        """Return the mode for ``when``; unknown values mean AUTO."""
        if isinstance(when, ColorMode):
            return when
        try:
            return cls(str(when).lower())
        except ValueError:
            return cls.AUTO


class _Color(IntEnum):
    RED = 31
    GREEN = 32
    YELLOW = 33
    BLUE = 34
    MAGENTA = 35
    CYAN = 36


_RESET = "\x1b[0m"


def _terminal_allows_color(is_terminal: bool | None) -> bool:
    if "NO_COLOR" in os.environ:
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    if is_terminal is None:
        stream = sys.stdout
        try:
            is_terminal = bool(stream is not None and stream.isatty())
        except (AttributeError, ValueError):
            is_terminal = False
    return is_terminal


class Colorer:
    """Wraps values in colour codes when colouring is enabled."""

    def __init__(self, when: str | ColorMode = ColorMode.AUTO, is_terminal: bool | None = None):
        mode = ColorMode.parse(when)
        if mode is ColorMode.ALWAYS:
            self._enabled = True
        elif mode is ColorMode.NEVER:
            self._enabled = False
        else:
            self._enabled = _terminal_allows_color(is_terminal)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def _paint(self, color: _Color, value: object) -> str:
        text = str(value)
        if not self._enabled:
            return text
        return f"\x1b[{int(color)}m{text}{_RESET}"

    def port(self, value: object) -> str:
        return self._paint(_Color.YELLOW, value)

    def host(self, value: object) -> str:
        return self._paint(_Color.CYAN, value)

    def verdict_forwarded(self, value: object) -> str:
        return self._paint(_Color.GREEN, value)

    def verdict_dropped(self, value: object) -> str:
        return self._paint(_Color.RED, value)

    def verdict_audit(self, value: object) -> str:
        return self._paint(_Color.YELLOW, value)