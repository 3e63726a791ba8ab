"""Time parsing, flow and event printing, and status and peer formatting for network observability."""

__version__ = "0.9.0"