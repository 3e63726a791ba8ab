import io
import sys

import pytest

from hubblecli.color import ColorMode
from hubblecli.options import Output, PrinterOptions
from hubblecli.timeutil import STAMP_MILLI


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, Output.TAB),
        (1, Output.JSON),
        (2, Output.COMPACT),
        (3, Output.DICT),
        (4, Output.JSONPB),
    ],
)
def test_output_order_matches_enumeration(value, expected):
    assert PrinterOptions(output=value).output is expected


@pytest.mark.parametrize(
    "output, expected",
    [
        (Output.TAB, False),
        (Output.JSON, True),
        (Output.COMPACT, False),
        (Output.DICT, False),
        (Output.JSONPB, True),
    ],
)
def test_is_json_only_for_json_formats(output, expected):
    opts = PrinterOptions(output=output)
    assert opts.output.is_json is expected


def test_defaults():
    opts = PrinterOptions()
    assert opts.output is Output.TAB
    assert opts.time_format == STAMP_MILLI
    assert opts.color is ColorMode.AUTO
    assert opts.writer is sys.stdout
    assert opts.error_writer is sys.stderr
    assert (opts.enable_debug, opts.enable_ip_translation, opts.node_name) == (False, False, False)


def test_output_given_as_integer_is_converted():
    assert PrinterOptions(output=1).output is Output.JSON


def test_invalid_output_is_rejected():
    with pytest.raises(ValueError):
        PrinterOptions(output=42)


@pytest.mark.parametrize(
    "when, expected",
    [
        ("always", ColorMode.ALWAYS),
        ("ALWAYS", ColorMode.ALWAYS),
        ("never", ColorMode.NEVER),
        ("auto", ColorMode.AUTO),
        ("", ColorMode.AUTO),
        ("sometimes", ColorMode.AUTO),
    ],
)
def test_color_is_parsed(when, expected):
    assert PrinterOptions(color=when).color is expected


def test_error_writer_uses_given_stream():
    err = io.StringIO()
    opts = PrinterOptions(err_writer=err)
    opts.error_writer.write("oops\n")
    assert err.getvalue() == "oops\n"


def test_ignore_stderr_discards_messages():
    err = io.StringIO()
    opts = PrinterOptions(err_writer=err, ignore_stderr=True)
    written = opts.error_writer.write("oops\n")
    assert written == len("oops\n")
    assert err.getvalue() == ""


def test_custom_writer_is_kept():
    out = io.StringIO()
    assert PrinterOptions(writer=out).writer is out