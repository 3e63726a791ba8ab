import os
import sys

import pytest

from hubblecli import defaults


@pytest.fixture
def linux(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    for name in ("XDG_CONFIG_HOME", "HOME"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_socket_path_default(monkeypatch):
    monkeypatch.delenv(defaults.SOCKET_PATH_KEY, raising=False)
    assert defaults.get_socket_path() == "unix:///var/run/cilium/hubble.sock"


def test_socket_path_from_environment(monkeypatch):
    monkeypatch.setenv(defaults.SOCKET_PATH_KEY, "unix:///tmp/other.sock")
    assert defaults.get_socket_path() == "unix:///tmp/other.sock"


def test_socket_path_empty_environment_value_is_honoured(monkeypatch):
    monkeypatch.setenv(defaults.SOCKET_PATH_KEY, "")
    assert defaults.get_socket_path() == ""


def test_config_dir_uses_xdg(linux, tmp_path):
    linux.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert defaults.config_dir() == os.path.join(str(tmp_path), "hubble")


def test_config_dir_falls_back_to_home_config(linux, tmp_path):
    linux.setenv("HOME", str(tmp_path))
    assert defaults.config_dir() == os.path.join(str(tmp_path), ".config", "hubble")


def test_config_dir_fallback(linux, tmp_path):
    linux.setenv("HOME", str(tmp_path))
    assert defaults.config_dir_fallback() == os.path.join(str(tmp_path), ".hubble")


def test_config_file_prefers_config_dir(linux, tmp_path):
    xdg = tmp_path / "xdg"
    linux.setenv("XDG_CONFIG_HOME", str(xdg))
    linux.setenv("HOME", str(tmp_path))
    assert defaults.config_file() == os.path.join(str(xdg), "hubble", "config.yaml")


def test_config_file_uses_fallback_without_config_dir(monkeypatch, tmp_path):
    monkeypatch.setattr(sys, "platform", "win32")
    monkeypatch.delenv("AppData", raising=False)
    monkeypatch.delenv("APPDATA", raising=False)
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    assert defaults.config_dir() is None
    assert defaults.config_file() == os.path.join(str(tmp_path), ".hubble", "config.yaml")


def test_nothing_known_without_home(linux):
    assert defaults.config_dir() is None
    assert defaults.config_dir_fallback() is None
    assert defaults.config_file() is None


def test_timeouts_order():
    assert defaults.DIAL_TIMEOUT < defaults.REQUEST_TIMEOUT
    assert defaults.TARGET_TLS_PREFIX.endswith("://")