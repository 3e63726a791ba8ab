"""Watching peer change notifications and printing them one per line."""

from __future__ import annotations

import asyncio
import concurrent.futures
from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum
from typing import TextIO


class ChangeNotificationType(IntEnum):
    """Kind of change a peer notification reports."""

    UNKNOWN = 0
    PEER_ADDED = 1
    PEER_DELETED = 2
    PEER_UPDATED = 3


@dataclass
class ChangeNotification:
    """A change in the set of known peers.

    ``tls_server_name`` is None when the peer has no TLS settings.
    """

    name: str = ""
    address: str = ""
    type: ChangeNotificationType = ChangeNotificationType.UNKNOWN
    tls_server_name: str | None = None


_CANCELLED = (concurrent.futures.CancelledError, asyncio.CancelledError)


def _type_name(value: int) -> str:
    try:
        return ChangeNotificationType(value).name
    except ValueError:
        return str(int(value))


def process_response(out: TextIO, notification: ChangeNotification | None) -> None:
    """Write one line describing ``notification`` to ``out``."""
    if notification is None:
        notification = ChangeNotification()
    tls = ""
    if notification.tls_server_name is not None:
        tls = f" (TLS.ServerName: {notification.tls_server_name})"
    out.write(
        f"{_type_name(notification.type):<12} {notification.address} "
        f"{notification.name}{tls}\n"
    )


def run_peer(notifications: Iterable[ChangeNotification | None], out: TextIO) -> int:
    """Print every notification until the stream ends or is cancelled.

    Returns the number of notifications written; any other error from the
    stream propagates.
    """
    count = 0
    try:
        for notification in notifications:
            process_response(out, notification)
            count += 1
    except _CANCELLED:
        pass
    return count