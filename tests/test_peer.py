import asyncio
import io

import pytest

from hubblecli.peer import (
    ChangeNotification,
    ChangeNotificationType,
    process_response,
    run_peer,
)


@pytest.mark.parametrize(
    "notification, expected",
    [
        (
            ChangeNotification(
                name="foo.bar",
                address="1.2.3.4",
                type=ChangeNotificationType.PEER_ADDED,
                tls_server_name="tls.foo.bar",
            ),
            "PEER_ADDED   1.2.3.4 foo.bar (TLS.ServerName: tls.foo.bar)\n",
        ),
        (
            ChangeNotification(
                name="foo.bar",
                address="1.2.3.4",
                type=ChangeNotificationType.PEER_ADDED,
            ),
            "PEER_ADDED   1.2.3.4 foo.bar\n",
        ),
        (None, "UNKNOWN       \n"),
    ],
    ids=["happy path with tls", "happy path with no tls", "unknown change notification"],
)
def test_process_response(notification, expected):
    buf = io.StringIO()
    process_response(buf, notification)
    assert buf.getvalue() == expected


def test_process_response_unknown_type_number():
    buf = io.StringIO()
    process_response(buf, ChangeNotification(name="n", address="a", type=42))
    assert buf.getvalue().startswith("42 ")


def test_run_peer_writes_all_until_end():
    items = [
        ChangeNotification(name="a", address="1.1.1.1", type=ChangeNotificationType.PEER_ADDED),
        ChangeNotification(name="b", address="2.2.2.2", type=ChangeNotificationType.PEER_DELETED),
    ]
    buf = io.StringIO()
    assert run_peer(items, buf) == 2
    lines = buf.getvalue().splitlines()
    assert lines == ["PEER_ADDED   1.1.1.1 a", "PEER_DELETED 2.2.2.2 b"]


def _cancelled_stream():
    yield ChangeNotification(name="a", address="1.1.1.1", type=ChangeNotificationType.PEER_UPDATED)
    raise asyncio.CancelledError()


def test_run_peer_cancellation_ends_quietly():
    buf = io.StringIO()
    assert run_peer(_cancelled_stream(), buf) == 1
    assert buf.getvalue() == "PEER_UPDATED 1.1.1.1 a\n"


def _failing_stream():
    yield ChangeNotification(name="a")
    raise ConnectionError("boom")


def test_run_peer_propagates_other_errors():
    with pytest.raises(ConnectionError, match="boom"):
        run_peer(_failing_stream(), io.StringIO())