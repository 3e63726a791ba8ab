import pytest

from hubblecli.color import ColorMode, Colorer


@pytest.fixture
def colour_terminal(monkeypatch):
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.setenv("TERM", "xterm")
    return monkeypatch


def test_never_leaves_text_plain():
    colorer = Colorer("never")
    assert colorer.host("1.1.1.1") == "1.1.1.1"
    assert colorer.port(80) == "80"
    assert colorer.verdict_dropped("DROPPED") == "DROPPED"


def test_always_uses_ansi_codes():
    colorer = Colorer("ALWAYS")
    assert colorer.port("80") == "\x1b[33m80\x1b[0m"
    assert colorer.verdict_dropped("DROPPED") == "\x1b[31mDROPPED\x1b[0m"
    assert colorer.verdict_forwarded("FORWARDED") == "\x1b[32mFORWARDED\x1b[0m"


def test_audit_shares_port_colour():
    colorer = Colorer(ColorMode.ALWAYS)
    assert colorer.verdict_audit("AUDIT") == colorer.port("AUDIT")


def test_host_is_wrapped_when_enabled():
    colored = Colorer("always").host("pod")
    assert "pod" in colored
    assert colored != "pod"
    assert colored != Colorer("always").port("pod")


def test_disable_and_enable():
    colorer = Colorer("always")
    colored = colorer.host("x")
    colorer.disable()
    assert colorer.host("x") == "x"
    assert colorer.enabled is False
    colorer.enable()
    assert colorer.host("x") == colored


def test_auto_without_terminal_is_plain(colour_terminal):
    assert Colorer("auto", is_terminal=False).host("x") == "x"


def test_auto_with_terminal_colours(colour_terminal):
    assert Colorer("auto", is_terminal=True).host("x") == Colorer("always").host("x")


def test_auto_respects_no_color(colour_terminal):
    colour_terminal.setenv("NO_COLOR", "1")
    assert Colorer("auto", is_terminal=True).host("x") == "x"


def test_auto_respects_dumb_terminal(colour_terminal):
    colour_terminal.setenv("TERM", "dumb")
    assert Colorer("auto", is_terminal=True).host("x") == "x"


def test_unknown_mode_means_auto(colour_terminal):
    assert ColorMode.parse("sometimes") is ColorMode.AUTO
    assert Colorer("sometimes", is_terminal=True).enabled is True
    assert Colorer("sometimes", is_terminal=False).enabled is False