"""Settings that control how the printer renders its output."""

from __future__ import annotations

import io
import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TextIO

from hubblecli.color import ColorMode
from hubblecli.timeutil import STAMP_MILLI


class Output(IntEnum):
    """Output formats of the printer."""

    TAB = 0
    """Even tab-aligned columns."""
    JSON = 1
    """One JSON object per flow or event."""
    COMPACT = 2
    """One line per flow or event, as short as possible."""
    DICT = 3
    """The same fields as TAB, one ``KEY: value`` line each."""
    JSONPB = 4
    """The whole response as JSON, following the proto3 JSON mapping."""

    @property
    def is_json(self) -> bool:
        """True for the two JSON formats."""
        return self in (Output.JSON, Output.JSONPB)


class _NullWriter(io.TextIOBase):
    """A text stream that throws away everything written to it."""

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        return len(text)


@dataclass(kw_only=True)
class PrinterOptions:
    """Everything that configures a printer.

    ``color`` is one of "auto", "always" or "never"; any other value means
    "auto". Colour only applies to the dict and compact formats.
    ``time_format`` is a reference-time layout and has no effect on the JSON
    formats.
    """

    output: Output = Output.TAB
    writer: TextIO = field(default_factory=lambda: sys.stdout)
    err_writer: TextIO = field(default_factory=lambda: sys.stderr)
    ignore_stderr: bool = False
    enable_debug: bool = False
    enable_ip_translation: bool = False
    node_name: bool = False
    time_format: str = STAMP_MILLI
    color: ColorMode | str = ColorMode.AUTO

    def __post_init__(self) -> None:
        self.output = Output(self.output)
        self.color = ColorMode.parse(self.color)

    @property
    def error_writer(self) -> TextIO:
        """The stream that error messages go to, honouring ``ignore_stderr``."""
        if self.ignore_stderr:
            return _NullWriter()
        return self.err_writer