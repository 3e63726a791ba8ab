import pytest

from hubblecli.status import (
    HealthStatus,
    NotHealthyError,
    ServerStatus,
    format_status,
    health_message,
)

TARGET = "localhost:4245"


def test_health_message_serving():
    assert health_message(HealthStatus.SERVING) == (True, "Ok")


@pytest.mark.parametrize(
    "status", [HealthStatus.NOT_SERVING, HealthStatus.UNKNOWN, HealthStatus.SERVICE_UNKNOWN]
)
def test_health_message_not_serving(status):
    healthy, message = health_message(status)
    assert healthy is False
    assert message == f"Unavailable: {status.name}"


def test_not_healthy_raises_with_output():
    with pytest.raises(NotHealthyError) as info:
        format_status(TARGET, HealthStatus.NOT_SERVING, None)
    assert str(info.value) == "not healthy"
    assert info.value.output == f"Healthcheck (via {TARGET}): Unavailable: NOT_SERVING\n"


def test_healthy_without_status_is_an_error():
    with pytest.raises(ValueError):
        format_status(TARGET, HealthStatus.SERVING, None)


def test_minimal_status():
    text = format_status(TARGET, HealthStatus.SERVING, ServerStatus(num_flows=3))
    assert text.splitlines() == [
        f"Healthcheck (via {TARGET}): Ok",
        "Current/Max Flows: 3/0",
        "Flows/s: N/A",
    ]


def test_flow_ratio_and_rate():
    status = ServerStatus(num_flows=10, max_flows=20, seen_flows=100, uptime_ns=50_000_000_000)
    lines = format_status(TARGET, HealthStatus.SERVING, status).splitlines()
    assert lines[1] == "Current/Max Flows: 10/20 (50.00%)"
    assert lines[2] == "Flows/s: 2.00"


def test_connected_nodes_without_unavailable_count():
    status = ServerStatus(num_connected_nodes=4)
    lines = format_status(TARGET, HealthStatus.SERVING, status).splitlines()
    assert lines[-1] == "Connected Nodes: 4"
    assert not any(line.startswith("Unavailable") for line in lines)


def test_unavailable_nodes_sorted_with_remainder():
    status = ServerStatus(
        num_connected_nodes=2,
        num_unavailable_nodes=3,
        unavailable_nodes=["node-b", "node-a"],
    )
    text = format_status(TARGET, HealthStatus.SERVING, status)
    assert text.endswith(
        "Connected Nodes: 2/5\n"
        "Unavailable Nodes: 3\n"
        "  - node-a\n"
        "  - node-b\n"
        "  - and 1 more...\n"
    )
    assert status.unavailable_nodes == ["node-b", "node-a"]


def test_unavailable_count_without_names():
    status = ServerStatus(num_unavailable_nodes=2)
    text = format_status(TARGET, HealthStatus.SERVING, status)
    assert text.endswith("Unavailable Nodes: 2\n")
    assert "  - " not in text


def test_zero_unavailable_prints_no_section():
    status = ServerStatus(num_connected_nodes=1, num_unavailable_nodes=0, unavailable_nodes=["x"])
    text = format_status(TARGET, HealthStatus.SERVING, status)
    assert "Unavailable Nodes" not in text
    assert "Connected Nodes: 1/1\n" in text