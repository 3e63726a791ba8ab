"""Default values for connecting to a server and locating configuration."""

from __future__ import annotations

import os
import sys

SERVER_ADDRESS = "localhost:4245"
DIAL_TIMEOUT = 5.0  # seconds
REQUEST_TIMEOUT = 12.0  # seconds
FLOW_PRINT_COUNT = 20
EVENTS_PRINT_COUNT = 20
TARGET_TLS_PREFIX = "tls://"

SOCKET_PATH_KEY = "HUBBLE_DEFAULT_SOCKET_PATH"
_SOCKET_PATH = "unix:///var/run/cilium/hubble.sock"

_CONFIG_FILE_NAME = "config.yaml"


def _env(name: str) -> str:
    return os.environ.get(name, "")


def _user_config_dir() -> str | None:
    if sys.platform.startswith("win"):
        return _env("AppData") or _env("APPDATA") or None
    home = _env("HOME")
    if sys.platform == "darwin":
        return os.path.join(home, "Library", "Application Support") if home else None
    xdg = _env("XDG_CONFIG_HOME")
    if xdg:
        return xdg
    return os.path.join(home, ".config") if home else None


def _user_home_dir() -> str | None:
    if sys.platform.startswith("win"):
        return _env("USERPROFILE") or None
    return _env("HOME") or None


def get_socket_path() -> str:
    """Return the default server address, overridable through the environment."""
    return os.environ.get(SOCKET_PATH_KEY, _SOCKET_PATH)


def config_dir() -> str | None:
    """Return the per-user configuration directory, or None when unknown."""
    base = _user_config_dir()
    return os.path.join(base, "hubble") if base else None


def config_dir_fallback() -> str | None:
    """Return the configuration directory under the home directory, or None."""
    home = _user_home_dir()
    return os.path.join(home, ".hubble") if home else None


def config_file() -> str | None:
    """Return the path of the optional configuration file, or None."""
    directory = config_dir() or config_dir_fallback()
    return os.path.join(directory, _CONFIG_FILE_NAME) if directory else None