"""Build information and the detailed version line."""

from __future__ import annotations

import platform
import sys
from dataclasses import dataclass


@dataclass(frozen=True)
class BuildInfo:
    """Version and source-control details the program was built from."""

    version: str = ""
    git_branch: str = ""
    git_hash: str = ""

    def git_info(self) -> str:
        """Return ``@branch-hash``, ``@hash`` or an empty string."""
        if self.git_branch and self.git_hash:
            return f"@{self.git_branch}-{self.git_hash}"
        if self.git_hash:
            return f"@{self.git_hash}"
        return ""


def _runtime() -> str:
    return f"{platform.python_implementation().lower()}{platform.python_version()}"


def version_line(root_name: str, info: BuildInfo) -> str:
    """Return the detailed version line shown by the version command."""
    return (
        f"{root_name} v{info.version}{info.git_info()} compiled with "
        f"{_runtime()} on {sys.platform}/{platform.machine()}"
    )