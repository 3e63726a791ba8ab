"""Flow, event and response messages exchanged with the observer server."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum, IntEnum
from typing import Any

MESSAGE_TYPE_UNSPEC = 0
MESSAGE_TYPE_DROP = 1
MESSAGE_TYPE_DEBUG = 2
MESSAGE_TYPE_CAPTURE = 3
MESSAGE_TYPE_TRACE = 4
MESSAGE_TYPE_POLICY_VERDICT = 5
MESSAGE_TYPE_RECORD_CAPTURE = 6
MESSAGE_TYPE_TRACE_SOCK = 7
MESSAGE_TYPE_ACCESS_LOG = 129
MESSAGE_TYPE_AGENT = 130

TRACE_TO_LXC = 0
TRACE_TO_PROXY = 1
TRACE_TO_HOST = 2
TRACE_TO_STACK = 3
TRACE_TO_OVERLAY = 4
TRACE_FROM_LXC = 5
TRACE_FROM_PROXY = 6
TRACE_FROM_HOST = 7
TRACE_FROM_STACK = 8
TRACE_FROM_OVERLAY = 9
TRACE_FROM_NETWORK = 10
TRACE_TO_NETWORK = 11

POLICY_MATCH_NONE = 0
POLICY_MATCH_L3_ONLY = 1
POLICY_MATCH_L3_L4 = 2
POLICY_MATCH_L4_ONLY = 3
POLICY_MATCH_ALL = 4

_TRACE_OBSERVATION_POINTS = {
    TRACE_TO_LXC: "to-endpoint",
    TRACE_TO_PROXY: "to-proxy",
    TRACE_TO_HOST: "to-host",
    TRACE_TO_STACK: "to-stack",
    TRACE_TO_OVERLAY: "to-overlay",
    TRACE_FROM_LXC: "from-endpoint",
    TRACE_FROM_PROXY: "from-proxy",
    TRACE_FROM_HOST: "from-host",
    TRACE_FROM_STACK: "from-stack",
    TRACE_FROM_OVERLAY: "from-overlay",
    TRACE_FROM_NETWORK: "from-network",
    TRACE_TO_NETWORK: "to-network",
}

_DROP_REASONS = {
    0: "Success",
    2: "Invalid packet",
    130: "Invalid source mac",
    131: "Invalid destination mac",
    132: "Invalid source ip",
    133: "Policy denied",
    134: "Invalid packet",
    135: "CT: Truncated or invalid header",
    136: "CT: Missing TCP ACK flag",
    137: "CT: Unknown L4 protocol",
    138: "CT: Can't create entry from packet",
    139: "Unsupported L3 protocol",
    140: "Missed tail call",
    141: "Error writing to packet",
    142: "Unknown L4 protocol",
    143: "Unknown ICMPv4 code",
    144: "Unknown ICMPv4 type",
    145: "Unknown ICMPv6 code",
    146: "Unknown ICMPv6 type",
    147: "Error retrieving tunnel key",
    148: "Error retrieving tunnel options",
    149: "Invalid Geneve option",
    150: "Unknown L3 target address",
    151: "Stale or unroutable IP",
    152: "No matching local container found",
    153: "Error while correcting L3 checksum",
    154: "Error while correcting L4 checksum",
    155: "CT: Map insertion failed",
    156: "Invalid IPv6 extension header",
    157: "IP fragmentation not supported",
    158: "Service backend not found",
    160: "No tunnel/encapsulation endpoint (datapath BUG!)",
    161: "Failed to insert into proxymap",
    162: "Policy denied (CIDR)",
    163: "Unknown connection tracking state",
    164: "Local host is unreachable",
    165: "No configuration available to perform policy decision",
    166: "Unsupported L2 protocol",
    167: "No mapping for NAT masquerade",
    168: "Unsupported protocol for NAT masquerade",
    169: "FIB lookup failed",
    170: "Encapsulation traffic is prohibited",
    171: "Invalid identity",
    172: "Unknown sender",
    173: "NAT not needed",
    174: "Is a ClusterIP",
    175: "First logical datagram fragment not found",
    176: "Forbidden ICMPv6 message",
    177: "Denied by LB src range check",
    178: "Socket lookup failed",
    179: "Socket assign failed",
    180: "Proxy redirection not supported for protocol",
    181: "Policy denied by denylist",
}

_POLICY_MATCH_TYPES = {
    POLICY_MATCH_NONE: "none",
    POLICY_MATCH_L3_ONLY: "L3-Only",
    POLICY_MATCH_L3_L4: "L3-L4",
    POLICY_MATCH_L4_ONLY: "L4-Only",
    POLICY_MATCH_ALL: "all",
}


def trace_observation_point(sub_type: int) -> str:
    """Name of a trace observation point; unknown points give their number."""
    point = sub_type & 0xFF
    return _TRACE_OBSERVATION_POINTS.get(point, str(point))


def drop_reason(code: int) -> str:
    """Description of a drop reason code; unknown codes give their number."""
    reason = code & 0xFF
    return _DROP_REASONS.get(reason, str(reason))


def policy_match_type(value: int) -> str:
    """Name of a policy match type."""
    return _POLICY_MATCH_TYPES.get(value, "unknown")


class Verdict(IntEnum):
    VERDICT_UNKNOWN = 0
    FORWARDED = 1
    DROPPED = 2
    ERROR = 3
    AUDIT = 4


class FlowType(IntEnum):
    UNKNOWN_TYPE = 0
    L3_L4 = 1
    L7 = 2
    SOCK = 3


class L7FlowType(IntEnum):
    UNKNOWN_L7_TYPE = 0
    REQUEST = 1
    RESPONSE = 2
    SAMPLE = 3


class DebugCapturePoint(IntEnum):
    DBG_CAPTURE_POINT_UNKNOWN = 0
    DBG_CAPTURE_DELIVERY = 4
    DBG_CAPTURE_FROM_LB = 5
    DBG_CAPTURE_AFTER_V46 = 6
    DBG_CAPTURE_AFTER_V64 = 7
    DBG_CAPTURE_PROXY_PRE = 8
    DBG_CAPTURE_PROXY_POST = 9
    DBG_CAPTURE_SNAT_PRE = 10
    DBG_CAPTURE_SNAT_POST = 11


class AgentEventType(IntEnum):
    AGENT_EVENT_UNKNOWN = 0
    AGENT_STARTED = 2
    POLICY_UPDATED = 3
    POLICY_DELETED = 4
    ENDPOINT_REGENERATE_SUCCESS = 5
    ENDPOINT_REGENERATE_FAILURE = 6
    ENDPOINT_CREATED = 7
    ENDPOINT_DELETED = 8
    IPCACHE_UPSERTED = 9
    IPCACHE_DELETED = 10
    SERVICE_UPSERTED = 11
    SERVICE_DELETED = 12


class DebugEventType(IntEnum):
    DBG_EVENT_UNKNOWN = 0
    DBG_GENERIC = 1
    DBG_LOCAL_DELIVERY = 2
    DBG_ENCAP = 3
    DBG_LXC_FOUND = 4
    DBG_POLICY_DENIED = 5
    DBG_CT_LOOKUP = 6
    DBG_CT_LOOKUP_REV = 7
    DBG_CT_MATCH = 8
    DBG_CT_CREATED = 9
    DBG_CT_CREATED2 = 10
    DBG_ICMP6_HANDLE = 11
    DBG_ICMP6_REQUEST = 12
    DBG_ICMP6_NS = 13
    DBG_ICMP6_TIME_EXCEEDED = 14
    DBG_CT_VERDICT = 15
    DBG_DECAP = 16
    DBG_PORT_MAP = 17
    DBG_ERROR_RET = 18
    DBG_TO_HOST = 19
    DBG_TO_STACK = 20
    DBG_PKT_HASH = 21
    DBG_LB6_LOOKUP_FRONTEND = 22
    DBG_LB6_LOOKUP_FRONTEND_FAIL = 23
    DBG_LB6_LOOKUP_BACKEND_SLOT = 24
    DBG_LB6_LOOKUP_BACKEND_SLOT_SUCCESS = 25
    DBG_LB6_LOOKUP_BACKEND_SLOT_V2_FAIL = 26
    DBG_LB6_LOOKUP_BACKEND_FAIL = 27
    DBG_LB6_REVERSE_NAT_LOOKUP = 28
    DBG_LB6_REVERSE_NAT = 29
    DBG_LB4_LOOKUP_FRONTEND = 30
    DBG_LB4_LOOKUP_FRONTEND_FAIL = 31
    DBG_LB4_LOOKUP_BACKEND_SLOT = 32
    DBG_LB4_LOOKUP_BACKEND_SLOT_SUCCESS = 33
    DBG_LB4_LOOKUP_BACKEND_SLOT_V2_FAIL = 34
    DBG_LB4_LOOKUP_BACKEND_FAIL = 35
    DBG_LB4_REVERSE_NAT_LOOKUP = 36
    DBG_LB4_REVERSE_NAT = 37
    DBG_LB4_LOOPBACK_SNAT = 38
    DBG_LB4_LOOPBACK_SNAT_REV = 39
    DBG_CT_LOOKUP4 = 40
    DBG_RR_BACKEND_SLOT_SEL = 41
    DBG_REV_PROXY_LOOKUP = 42
    DBG_REV_PROXY_FOUND = 43
    DBG_REV_PROXY_UPDATE = 44
    DBG_L4_POLICY = 45
    DBG_NETDEV_IN_CLUSTER = 46
    DBG_NETDEV_ENCAP4 = 47
    DBG_CT_LOOKUP4_1 = 48
    DBG_CT_LOOKUP4_2 = 49
    DBG_CT_CREATED4 = 50
    DBG_CT_LOOKUP6_1 = 51
    DBG_CT_LOOKUP6_2 = 52
    DBG_CT_CREATED6 = 53
    DBG_SKIP_PROXY = 54
    DBG_L4_CREATE = 55
    DBG_IP_ID_MAP_FAILED4 = 56
    DBG_IP_ID_MAP_FAILED6 = 57
    DBG_IP_ID_MAP_SUCCEED4 = 58
    DBG_IP_ID_MAP_SUCCEED6 = 59
    DBG_LB_STALE_CT = 60
    DBG_INHERIT_IDENTITY = 61
    DBG_SK_LOOKUP4 = 62
    DBG_SK_LOOKUP6 = 63
    DBG_SK_ASSIGN = 64


class NodeState(IntEnum):
    UNKNOWN_NODE_STATE = 0
    NODE_CONNECTED = 1
    NODE_UNAVAILABLE = 2
    NODE_GONE = 3
    NODE_ERROR = 4


def _field(
    default: Any = None,
    *,
    name: str | None = None,
    factory: Any = None,
    int64: bool = False,
    wrapper: bool = False,
) -> Any:
    """A message field with its JSON name and encoding hints."""
    metadata = {"json": name, "int64": int64, "wrapper": wrapper}
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MIN_SECONDS = -62135596800
_MAX_SECONDS = 253402300799
_NANOS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True)
class Timestamp:
    """A point in time as seconds and nanoseconds since the Unix epoch."""

    seconds: int = 0
    nanos: int = 0

    @classmethod
    def from_datetime(cls, moment: datetime) -> Timestamp:
        """Build a timestamp from a datetime; naive values are taken as UTC."""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        delta = moment - _EPOCH
        return cls(delta.days * 86400 + delta.seconds, delta.microseconds * 1000)

    def is_valid(self) -> bool:
        """True when the timestamp lies within years 1 to 9999 with sane nanos."""
        return (
            _MIN_SECONDS <= self.seconds <= _MAX_SECONDS
            and 0 <= self.nanos < _NANOS_PER_SECOND
        )

    def as_datetime(self) -> datetime:
        """The timestamp as a UTC datetime, truncated to microseconds."""
        return _EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanos // 1000)

    def to_json(self) -> str:
        """RFC 3339 form in UTC with 0, 3, 6 or 9 fractional digits."""
        if not self.is_valid():
            raise ValueError(f"invalid timestamp: seconds={self.seconds} nanos={self.nanos}")
        moment = _EPOCH + timedelta(seconds=self.seconds)
        text = (
            f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
            f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
        )
        if self.nanos:
            if self.nanos % 1_000_000 == 0:
                text += f".{self.nanos // 1_000_000:03d}"
            elif self.nanos % 1000 == 0:
                text += f".{self.nanos // 1000:06d}"
            else:
                text += f".{self.nanos:09d}"
        return text + "Z"


@dataclass
class IP:
    source: str = ""
    destination: str = ""
    encrypted: bool = False


@dataclass
class Ethernet:
    source: str = ""
    destination: str = ""


@dataclass
class TCP:
    source_port: int = 0
    destination_port: int = 0


@dataclass
class UDP:
    source_port: int = 0
    destination_port: int = 0


@dataclass
class ICMP:
    type: int = 0
    code: int = 0


@dataclass
class Layer4:
    """Layer 4 header; at most one protocol is set."""

    tcp: TCP | None = _field(name="TCP")
    udp: UDP | None = _field(name="UDP")
    icmpv4: ICMP | None = _field(name="ICMPv4")
    icmpv6: ICMP | None = _field(name="ICMPv6")


@dataclass
class Layer7:
    """Layer 7 record; at most one of dns, http and kafka is set."""

    type: L7FlowType = L7FlowType.UNKNOWN_L7_TYPE
    latency_ns: int = _field(0, int64=True)
    dns: dict | None = None
    http: dict | None = None
    kafka: dict | None = None


@dataclass
class CiliumEventType:
    type: int = 0
    sub_type: int = 0


@dataclass
class Endpoint:
    id: int = _field(0, name="ID")
    identity: int = 0
    namespace: str = ""
    labels: list[str] = _field(factory=list)
    pod_name: str = ""


@dataclass
class Service:
    name: str = ""
    namespace: str = ""


@dataclass
class Flow:
    """A single observed network flow."""

    time: Timestamp | None = None
    verdict: Verdict = Verdict.VERDICT_UNKNOWN
    drop_reason: int = 0
    ethernet: Ethernet | None = None
    ip: IP | None = _field(name="IP")
    l4: Layer4 | None = None
    source: Endpoint | None = None
    destination: Endpoint | None = None
    type: FlowType = _field(FlowType.UNKNOWN_TYPE, name="Type")
    node_name: str = ""
    source_names: list[str] = _field(factory=list)
    destination_names: list[str] = _field(factory=list)
    l7: Layer7 | None = None
    event_type: CiliumEventType | None = None
    source_service: Service | None = None
    destination_service: Service | None = None
    policy_match_type: int = 0
    is_reply: bool | None = _field(wrapper=True)
    debug_capture_point: DebugCapturePoint = DebugCapturePoint.DBG_CAPTURE_POINT_UNKNOWN
    summary: str = _field("", name="Summary")


@dataclass
class AgentEventUnknown:
    type: str = ""
    notification: str = ""


@dataclass
class TimeNotification:
    time: Timestamp | None = None


@dataclass
class PolicyUpdateNotification:
    labels: list[str] = _field(factory=list)
    revision: int = _field(0, int64=True)
    rule_count: int = _field(0, int64=True)


@dataclass
class EndpointRegenNotification:
    id: int = _field(0, int64=True)
    labels: list[str] = _field(factory=list)
    error: str = ""


@dataclass
class EndpointUpdateNotification:
    id: int = _field(0, int64=True)
    labels: list[str] = _field(factory=list)
    error: str = ""
    pod_name: str = ""
    namespace: str = ""


@dataclass
class IPCacheNotification:
    cidr: str = ""
    identity: int = 0
    old_identity: int | None = _field(wrapper=True)
    host_ip: str = ""
    old_host_ip: str = ""
    encrypt_key: int = 0
    namespace: str = ""
    pod_name: str = ""


@dataclass
class ServiceUpsertNotificationAddr:
    ip: str = ""
    port: int = 0


@dataclass
class ServiceUpsertNotification:
    id: int = 0
    frontend_address: ServiceUpsertNotificationAddr | None = None
    backend_addresses: list[ServiceUpsertNotificationAddr] = _field(factory=list)
    type: str = ""
    traffic_policy: str = ""
    name: str = ""
    namespace: str = ""


@dataclass
class ServiceDeleteNotification:
    id: int = 0


@dataclass
class AgentEvent:
    """An event emitted by the agent; at most one notification is set."""

    type: AgentEventType = AgentEventType.AGENT_EVENT_UNKNOWN
    unknown: AgentEventUnknown | None = None
    agent_start: TimeNotification | None = None
    policy_update: PolicyUpdateNotification | None = None
    endpoint_regenerate: EndpointRegenNotification | None = None
    endpoint_update: EndpointUpdateNotification | None = None
    ipcache_update: IPCacheNotification | None = None
    service_upsert: ServiceUpsertNotification | None = None
    service_delete: ServiceDeleteNotification | None = None


@dataclass
class DebugEvent:
    """A datapath debug event."""

    type: DebugEventType = DebugEventType.DBG_EVENT_UNKNOWN
    source: Endpoint | None = None
    hash: int | None = _field(wrapper=True)
    arg1: int | None = _field(wrapper=True)
    arg2: int | None = _field(wrapper=True)
    arg3: int | None = _field(wrapper=True)
    message: str = ""
    cpu: int | None = _field(wrapper=True)


@dataclass
class NodeStatusEvent:
    """A change in the state of one or more nodes."""

    state_change: NodeState = NodeState.UNKNOWN_NODE_STATE
    node_names: list[str] = _field(factory=list)
    message: str = ""


@dataclass
class GetFlowsResponse:
    """A flow or node status event; at most one of them is set."""

    flow: Flow | None = None
    node_status: NodeStatusEvent | None = None
    node_name: str = ""
    time: Timestamp | None = None


@dataclass
class GetAgentEventsResponse:
    agent_event: AgentEvent | None = None
    node_name: str = ""
    time: Timestamp | None = None


@dataclass
class GetDebugEventsResponse:
    debug_event: DebugEvent | None = None
    node_name: str = ""
    time: Timestamp | None = None


def _is_populated(value: Any, wrapper: bool) -> bool:
    if value is None:
        return False
    if wrapper or isinstance(value, dict) or is_dataclass(value):
        return True
    return bool(value)


def _to_json_value(value: Any, int64: bool) -> Any:
    if isinstance(value, Timestamp):
        return value.to_json()
    if isinstance(value, Enum):
        return value.name
    if is_dataclass(value):
        return to_json_dict(value)
    if isinstance(value, (list, tuple)):
        return [_to_json_value(item, int64) for item in value]
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and int64:
        return str(value)
    return value


def to_json_dict(message: Any) -> dict:
    """Map a message to the proto3 JSON form, with unset fields left out."""
    if not is_dataclass(message) or isinstance(message, type):
        raise TypeError(f"not a message: {message!r}")
    out: dict[str, Any] = {}
    for item in fields(message):
        value = getattr(message, item.name)
        if not _is_populated(value, item.metadata.get("wrapper", False)):
            continue
        name = item.metadata.get("json") or item.name
        out[name] = _to_json_value(value, item.metadata.get("int64", False))
    return out