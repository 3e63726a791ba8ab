"""Formatting of the server health check and server status."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

_UINT32_MASK = 0xFFFFFFFF


class HealthStatus(IntEnum):
    """Serving status reported by the standard health check."""

    UNKNOWN = 0
    SERVING = 1
    NOT_SERVING = 2
    SERVICE_UNKNOWN = 3


@dataclass
class ServerStatus:
    """Status of the observer server.

    The node counts are None when the server does not report them.
    """

    num_flows: int = 0
    max_flows: int = 0
    seen_flows: int = 0
    uptime_ns: int = 0
    num_connected_nodes: int | None = None
    num_unavailable_nodes: int | None = None
    unavailable_nodes: list[str] | None = None


class NotHealthyError(Exception):
    """Raised when the server is not serving; ``output`` holds what was formatted."""

    def __init__(self, output: str):
        super().__init__("not healthy")
        self.output = output


def health_message(status: HealthStatus | int) -> tuple[bool, str]:
    """Return whether ``status`` is healthy and the message describing it."""
    if status == HealthStatus.SERVING:
        return True, "Ok"
    try:
        name = HealthStatus(status).name
    except ValueError:
        name = str(int(status))
    return False, f"Unavailable: {name}"


def format_status(
    target: str, health: HealthStatus | int, server_status: ServerStatus | None
) -> str:
    """Return the status report for the server at ``target``.

    Raises NotHealthyError when the health check does not report serving,
    and ValueError when a healthy server's status is missing.
    """
    healthy, message = health_message(health)
    lines = [f"Healthcheck (via {target}): {message}\n"]
    if not healthy:
        raise NotHealthyError("".join(lines))
    if server_status is None:
        raise ValueError("missing hubble server status")

    ss = server_status
    ratio = ""
    if ss.max_flows > 0:
        ratio = f" ({ss.num_flows / ss.max_flows * 100:.2f}%)"
    lines.append(f"Current/Max Flows: {ss.num_flows}/{ss.max_flows}{ratio}\n")

    per_second = "N/A"
    uptime = ss.uptime_ns / 1e9
    if uptime > 0:
        per_second = f"{ss.seen_flows / uptime:.2f}"
    lines.append(f"Flows/s: {per_second}\n")

    connected = ss.num_connected_nodes
    unavailable_count = ss.num_unavailable_nodes
    if connected is not None:
        total = ""
        if unavailable_count is not None:
            total = f"/{(unavailable_count + connected) & _UINT32_MASK}"
        lines.append(f"Connected Nodes: {connected}{total}\n")

    if unavailable_count is not None and unavailable_count > 0:
        if ss.unavailable_nodes:
            names = sorted(ss.unavailable_nodes)
            if unavailable_count > len(names):
                names.append(f"and {unavailable_count - len(names)} more...")
            listing = "\n  - ".join(names)
            lines.append(f"Unavailable Nodes: {unavailable_count}\n  - {listing}\n")
        else:
            lines.append(f"Unavailable Nodes: {unavailable_count}\n")
    return "".join(lines)