"""Render flows, node status changes, agent events and debug events."""

from __future__ import annotations

import json
import posixpath
from enum import IntEnum
from typing import Any, TextIO

from hubblecli.color import Colorer
from hubblecli.flow import (
    MESSAGE_TYPE_CAPTURE,
    MESSAGE_TYPE_DROP,
    MESSAGE_TYPE_POLICY_VERDICT,
    MESSAGE_TYPE_TRACE,
    AgentEvent,
    AgentEventType,
    DebugCapturePoint,
    DebugEventType,
    Endpoint,
    Flow,
    GetAgentEventsResponse,
    GetDebugEventsResponse,
    GetFlowsResponse,
    L7FlowType,
    NodeState,
    ServiceUpsertNotificationAddr,
    Timestamp,
    Verdict,
    drop_reason,
    policy_match_type,
    to_json_dict,
    trace_observation_point,
)
from hubblecli.options import Output, PrinterOptions
from hubblecli.timeutil import format_time

_TAB = "\t"
_NEWLINE = "\n"
_SPACE = " "
DICT_SEPARATOR = "------------"
NODE_NAMES_CUT_OFF = 50

_TAB_MIN_WIDTH = 2
_TAB_PADDING = 3


class _TabWriter:
    """Buffers tab-terminated cells and aligns them into columns on flush."""

    def __init__(self, out: TextIO, min_width: int, padding: int):
        self._out = out
        self._min_width = min_width
        self._padding = padding
        self._chunks: list[str] = []

    def write(self, text: str) -> None:
        self._chunks.append(text)

    def flush(self) -> None:
        text = "".join(self._chunks)
        self._chunks.clear()
        if not text:
            return
        lines = [line.split(_TAB) for line in text.split(_NEWLINE)]
        out: list[str] = []
        self._format(lines, 0, len(lines), [], out)
        self._out.write("".join(out))

    def _format(self, lines, line0, line1, widths, out) -> None:
        column = len(widths)
        current = line0
        while current < line1:
            if column >= len(lines[current]) - 1:
                current += 1
                continue
            self._write_lines(lines, line0, current, widths, out)
            line0 = current
            width = self._min_width
            while current < line1 and column < len(lines[current]) - 1:
                width = max(width, len(lines[current][column]) + self._padding)
                current += 1
            self._format(lines, line0, current, widths + [width], out)
            line0 = current
        self._write_lines(lines, line0, line1, widths, out)

    @staticmethod
    def _write_lines(lines, line0, line1, widths, out) -> None:
        for index in range(line0, line1):
            for column, cell in enumerate(lines[index]):
                out.append(cell)
                if column < len(widths):
                    out.append(_SPACE * (widths[column] - len(cell)))
            if index + 1 != len(lines):
                out.append(_NEWLINE)


def _enum_name(enum_cls: type[IntEnum], value: Any) -> str:
    try:
        return enum_cls(value).name
    except ValueError:
        return str(int(value))


def _join_host_port(host: str, port: str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _path_join(*parts: str) -> str:
    joined = "/".join(part for part in parts if part)
    return posixpath.normpath(joined) if joined else ""


_QUOTE_ESCAPES = {
    "\a": "\\a", "\b": "\\b", "\f": "\\f", "\n": "\\n",
    "\r": "\\r", "\t": "\\t", "\v": "\\v", "\\": "\\\\", '"': '\\"',
}


def _quote(text: str) -> str:
    out = []
    for char in text:
        if char in _QUOTE_ESCAPES:
            out.append(_QUOTE_ESCAPES[char])
        elif char.isprintable():
            out.append(char)
        elif ord(char) < 0x80:
            out.append(f"\\x{ord(char):02x}")
        elif ord(char) <= 0xFFFF:
            out.append(f"\\u{ord(char):04x}")
        else:
            out.append(f"\\U{ord(char):08x}")
    return '"' + "".join(out) + '"'


def _encode_json(stream: TextIO, message: Any) -> None:
    if message is None:
        payload = "null"
    else:
        payload = json.dumps(to_json_dict(message), separators=(",", ":"), ensure_ascii=False)
    stream.write(payload + _NEWLINE)


def _write(stream: TextIO, text: str, what: str) -> None:
    try:
        stream.write(text)
    except OSError as err:
        raise OSError(f"failed to write out {what}: {err}") from err


def fmt_timestamp(layout: str, ts: Timestamp | None) -> str:
    """Format a timestamp with ``layout``, or "N/A" when it is missing or invalid."""
    if ts is None or not ts.is_valid():
        return "N/A"
    return format_time(ts.as_datetime(), layout)


def get_flow_type(flow: Flow | None) -> str:
    """Return the type of a flow as a string."""
    if flow is None:
        return "UNKNOWN"
    l7 = flow.l7
    if l7 is not None:
        protocol = "l7"
        if l7.http is not None:
            protocol = "http"
        elif l7.dns is not None:
            protocol = "dns"
        elif l7.kafka is not None:
            protocol = "kafka"
        return f"{protocol}-{_enum_name(L7FlowType, l7.type).lower()}"

    event_type = flow.event_type
    kind = event_type.type if event_type is not None else 0
    sub_type = event_type.sub_type if event_type is not None else 0
    if kind == MESSAGE_TYPE_TRACE:
        return trace_observation_point(sub_type)
    if kind == MESSAGE_TYPE_DROP:
        return drop_reason(sub_type)
    if kind == MESSAGE_TYPE_POLICY_VERDICT:
        if flow.verdict == Verdict.FORWARDED:
            return policy_match_type(flow.policy_match_type)
        if flow.verdict == Verdict.DROPPED:
            return drop_reason(flow.drop_reason)
    elif kind == MESSAGE_TYPE_CAPTURE:
        return _enum_name(DebugCapturePoint, flow.debug_capture_point)
    return "UNKNOWN"


def join_with_cut_off(elems: list[str], sep: str, target_len: int) -> str:
    """Join ``elems``, omitting those past ``target_len`` but always keeping one.

    The number of omitted elements is appended as " (and N more)".
    """
    length = 0
    end = len(elems)
    for index, elem in enumerate(elems):
        length += len(elem) + len(sep)
        if length > target_len and index > 0:
            end = index
            break
    joined = sep.join(elems[:end])
    omitted = len(elems) - end
    if omitted == 0:
        return joined
    return f"{joined} (and {omitted} more)"


def _format_service_addr(addr: ServiceUpsertNotificationAddr) -> str:
    return _join_host_port(addr.ip, str(addr.port))


def get_agent_event_details(event: AgentEvent | None, time_layout: str) -> str:
    """Return a one-line description of an agent event's notification."""
    if event is None:
        event = AgentEvent()
    kind = event.type
    if kind == AgentEventType.AGENT_EVENT_UNKNOWN:
        if (unknown := event.unknown) is not None:
            return f"type: {unknown.type}, notification: {unknown.notification}"
    elif kind == AgentEventType.AGENT_STARTED:
        if (start := event.agent_start) is not None:
            return f"start time: {fmt_timestamp(time_layout, start.time)}"
    elif kind in (AgentEventType.POLICY_UPDATED, AgentEventType.POLICY_DELETED):
        if (policy := event.policy_update) is not None:
            return (
                f"labels: [{','.join(policy.labels)}], revision: {policy.revision}, "
                f"count: {policy.rule_count}"
            )
    elif kind in (
        AgentEventType.ENDPOINT_REGENERATE_SUCCESS,
        AgentEventType.ENDPOINT_REGENERATE_FAILURE,
    ):
        if (regen := event.endpoint_regenerate) is not None:
            text = f"id: {regen.id}, labels: [{','.join(regen.labels)}]"
            if regen.error:
                text += f", error: {regen.error}"
            return text
    elif kind in (AgentEventType.ENDPOINT_CREATED, AgentEventType.ENDPOINT_DELETED):
        if (update := event.endpoint_update) is not None:
            text = f"id: {update.id}"
            if update.namespace:
                text += f", namespace: {update.namespace}"
            if update.pod_name:
                text += f", pod name: {update.pod_name}"
            return text
    elif kind in (AgentEventType.IPCACHE_UPSERTED, AgentEventType.IPCACHE_DELETED):
        if (cache := event.ipcache_update) is not None:
            text = f"cidr: {cache.cidr}, identity: {cache.identity}"
            if cache.old_identity is not None:
                text += f", old identity: {cache.old_identity}"
            if cache.host_ip:
                text += f", host ip: {cache.host_ip}"
            if cache.old_host_ip:
                text += f", old host ip: {cache.old_host_ip}"
            return text + f", encrypt key: {cache.encrypt_key}"
    elif kind == AgentEventType.SERVICE_UPSERTED:
        if (svc := event.service_upsert) is not None:
            text = f"id: {svc.id}"
            if svc.frontend_address is not None:
                text += f", frontend: {_format_service_addr(svc.frontend_address)}"
            if svc.backend_addresses:
                backends = ",".join(_format_service_addr(a) for a in svc.backend_addresses)
                text += f", backends: [{backends}]"
            if svc.type:
                text += f", type: {svc.type}"
            if svc.traffic_policy:
                text += f", traffic policy: {svc.traffic_policy}"
            if svc.namespace:
                text += f", namespace: {svc.namespace}"
            if svc.name:
                text += f", name: {svc.name}"
            return text
    elif kind == AgentEventType.SERVICE_DELETED:
        if (deleted := event.service_delete) is not None:
            return f"id: {deleted.id}"
    return "UNKNOWN"


def _fmt_hex_uint32(value: int | None) -> str:
    if value is None:
        return "N/A"
    return f"0x{value:x}"


def _fmt_cpu(cpu: int | None) -> str:
    if cpu is None:
        return "N/A"
    return f"{cpu:02d}"


def _fmt_endpoint_short(ep: Endpoint | None) -> str:
    if ep is None:
        return "N/A"
    text = f"ID: {ep.id}"
    if ep.namespace and ep.pod_name:
        return f"{ep.namespace}/{ep.pod_name} ({text})"
    if len(ep.labels) == 1 and "reserved:".startswith(ep.labels[0]):
        return f"{ep.labels[0]} ({text})"
    return text


class Printer:
    """Writes flows and events in the configured output format."""

    def __init__(self, options: PrinterOptions | None = None):
        self.options = options if options is not None else PrinterOptions()
        self._line = 0
        self._color = Colorer(self.options.color)
        self._tab: _TabWriter | None = None
        if self.options.output is Output.TAB:
            self._tab = _TabWriter(self.options.writer, _TAB_MIN_WIDTH, _TAB_PADDING)
            self._color.disable()

    def close(self) -> None:
        """Flush any buffered tabular output."""
        if self._tab is not None:
            self._tab.flush()

    def __enter__(self) -> Printer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def write_err(self, msg: str) -> None:
        """Write ``msg`` and a newline to the error stream."""
        self.options.error_writer.write(msg + _NEWLINE)

    def get_ports(self, flow: Flow | None) -> tuple[str, str]:
        """Return the source and destination port of a TCP or UDP flow."""
        l4 = flow.l4 if flow is not None else None
        if l4 is None:
            return "", ""
        proto = l4.tcp if l4.tcp is not None else l4.udp
        if proto is None:
            return "", ""
        return str(proto.source_port), str(proto.destination_port)

    def get_host_names(self, flow: Flow | None) -> tuple[str, str]:
        """Return the source and destination host names of a flow."""
        if flow is None:
            return "", ""
        if flow.ip is None:
            if flow.ethernet is not None:
                return (
                    self._color.host(flow.ethernet.source),
                    self._color.host(flow.ethernet.destination),
                )
            return "", ""

        src_ns = dst_ns = src_pod = dst_pod = src_svc = dst_svc = ""
        if flow.source is not None:
            src_ns, src_pod = flow.source.namespace, flow.source.pod_name
        if flow.destination is not None:
            dst_ns, dst_pod = flow.destination.namespace, flow.destination.pod_name
        if flow.source_service is not None:
            src_ns, src_svc = flow.source_service.namespace, flow.source_service.name
        if flow.destination_service is not None:
            dst_ns, dst_svc = flow.destination_service.namespace, flow.destination_service.name
        src_port, dst_port = self.get_ports(flow)
        src = self.hostname(flow.ip.source, src_port, src_ns, src_pod, src_svc, flow.source_names)
        dst = self.hostname(
            flow.ip.destination, dst_port, dst_ns, dst_pod, dst_svc, flow.destination_names
        )
        return self._color.host(src), self._color.host(dst)

    def hostname(self, ip, port, ns, pod, svc, names) -> str:
        """Return ``host:port``, or just the host when the port is empty or "0".

        With IP translation the host is the pod or service name, or the
        comma-separated domain names, falling back to the IP.
        """
        host = ip
        if self.options.enable_ip_translation:
            if pod:
                host = _path_join(ns, pod)
            elif svc:
                host = _path_join(ns, svc)
            elif names:
                host = ",".join(names)
        if port and port != "0":
            return _join_host_port(host, self._color.port(port))
        return host

    def _verdict(self, flow: Flow) -> str:
        verdict = flow.verdict
        name = _enum_name(Verdict, verdict)
        if verdict == Verdict.FORWARDED:
            return self._color.verdict_forwarded(name)
        if verdict in (Verdict.DROPPED, Verdict.ERROR):
            return self._color.verdict_dropped(name)
        if verdict == Verdict.AUDIT:
            return self._color.verdict_audit(name)
        return name

    def _timestamp(self, ts: Timestamp | None) -> str:
        return fmt_timestamp(self.options.time_format, ts)

    def write_proto_flow(self, response: GetFlowsResponse) -> None:
        """Write the flow held by ``response``."""
        opts = self.options
        output = opts.output
        if output is Output.JSON:
            _encode_json(opts.writer, response.flow)
            return
        if output is Output.JSONPB:
            _encode_json(opts.writer, response)
            return

        flow = response.flow if response.flow is not None else Flow()
        src, dst = self.get_host_names(flow)
        if output is Output.TAB:
            parts = []
            if self._line == 0:
                parts.append("TIMESTAMP\t")
                if opts.node_name:
                    parts.append("NODE\t")
                parts.append("SOURCE\tDESTINATION\tTYPE\tVERDICT\tSUMMARY\n")
            parts.append(self._timestamp(flow.time) + _TAB)
            if opts.node_name:
                parts.append(flow.node_name + _TAB)
            parts.append(
                f"{src}\t{dst}\t{get_flow_type(flow)}\t{self._verdict(flow)}\t{flow.summary}\n"
            )
            self._tab.write("".join(parts))
        elif output is Output.DICT:
            parts = []
            if self._line != 0:
                parts.append(DICT_SEPARATOR)
            parts.append(f"  TIMESTAMP: {self._timestamp(flow.time)}\n")
            if opts.node_name:
                parts.append(f"       NODE: {flow.node_name}\n")
            parts.append(
                f"     SOURCE: {src}\n"
                f"DESTINATION: {dst}\n"
                f"       TYPE: {get_flow_type(flow)}\n"
                f"    VERDICT: {self._verdict(flow)}\n"
                f"    SUMMARY: {flow.summary}\n"
            )
            _write(opts.writer, "".join(parts), "packet")
        elif output is Output.COMPACT:
            node = f" [{flow.node_name}]" if opts.node_name else ""
            arrow = "->"
            if flow.is_reply is None:
                arrow = "<>"
            elif flow.is_reply:
                src, dst = dst, src
                arrow = "<-"
            _write(
                opts.writer,
                f"{self._timestamp(flow.time)}{node}: {src} {arrow} {dst} "
                f"{get_flow_type(flow)} {self._verdict(flow)} ({flow.summary})\n",
                "packet",
            )
        self._line += 1

    def write_proto_node_status_event(self, response: GetFlowsResponse) -> None:
        """Write the node status event held by ``response`` to the error stream.

        Outside debug mode only error and unavailability events are written.
        """
        status = response.node_status
        if status is None:
            raise ValueError("not a node status event")
        opts = self.options
        if not opts.enable_debug and status.state_change not in (
            NodeState.NODE_ERROR,
            NodeState.NODE_UNAVAILABLE,
        ):
            return

        output = opts.output
        if output.is_json:
            _encode_json(opts.error_writer, response)
        elif output is Output.DICT:
            if self._line != 0:
                opts.writer.write(DICT_SEPARATOR + _NEWLINE)
            else:
                self._line += 1
            node_names = join_with_cut_off(status.node_names, ", ", NODE_NAMES_CUT_OFF)
            message = _quote(status.message) if status.message else "N/A"
            _write(
                opts.error_writer,
                f"  TIMESTAMP: {self._timestamp(response.time)}\n"
                f"      STATE: {_enum_name(NodeState, status.state_change)}\n"
                f"      NODES: {node_names}\n"
                f"    MESSAGE: {message}\n",
                "node status",
            )
        else:
            count = len(status.node_names)
            node_names = join_with_cut_off(status.node_names, ", ", NODE_NAMES_CUT_OFF)
            prefix = f"{self._timestamp(response.time)} [{response.node_name}]"
            state = status.state_change
            if state == NodeState.NODE_CONNECTED:
                msg = f"{prefix}: Receiving flows from {count} nodes: {node_names}"
            elif state == NodeState.NODE_UNAVAILABLE:
                msg = f"{prefix}: {count} nodes are unavailable: {node_names}"
            elif state == NodeState.NODE_GONE:
                msg = f"{prefix}: {count} nodes removed from cluster: {node_names}"
            elif state == NodeState.NODE_ERROR:
                msg = f"{prefix}: Error {_quote(status.message)} on {count} nodes: {node_names}"
            else:
                msg = f"{prefix}: unknown node status event: {status}"
            self.write_err(msg)

    def write_proto_agent_event(self, response: GetAgentEventsResponse) -> None:
        """Write the agent event held by ``response``."""
        event = response.agent_event
        if event is None:
            raise ValueError("not an agent event")
        opts = self.options
        output = opts.output
        if output is Output.JSON:
            _encode_json(opts.writer, event)
            return
        if output is Output.JSONPB:
            _encode_json(opts.writer, response)
            return

        kind = _enum_name(AgentEventType, event.type)
        details = get_agent_event_details(event, opts.time_format)
        timestamp = self._timestamp(response.time)
        if output is Output.DICT:
            parts = []
            if self._line != 0:
                parts.append(DICT_SEPARATOR)
            parts.append(f"  TIMESTAMP: {timestamp}\n")
            if opts.node_name:
                parts.append(f"       NODE: {response.node_name}\n")
            parts.append(f"       TYPE: {kind}\n    DETAILS: {details}\n")
            _write(opts.writer, "".join(parts), "agent event")
        elif output is Output.TAB:
            parts = []
            if self._line == 0:
                parts.append("TIMESTAMP\t")
                if opts.node_name:
                    parts.append("NODE\t")
                parts.append("TYPE\tDETAILS\n")
            parts.append(timestamp + _TAB)
            if opts.node_name:
                parts.append(response.node_name + _TAB)
            parts.append(f"{kind}\t{details}\n")
            self._tab.write("".join(parts))
        elif output is Output.COMPACT:
            node = f" [{response.node_name}]" if opts.node_name else ""
            _write(opts.writer, f"{timestamp}{node}: {kind} ({details})\n", "agent event")
        self._line += 1

    def write_proto_debug_event(self, response: GetDebugEventsResponse) -> None:
        """Write the debug event held by ``response``."""
        event = response.debug_event
        if event is None:
            raise ValueError("not a debug event")
        opts = self.options
        output = opts.output
        if output is Output.JSON:
            _encode_json(opts.writer, event)
            return
        if output is Output.JSONPB:
            _encode_json(opts.writer, response)
            return

        kind = _enum_name(DebugEventType, event.type)
        source = _fmt_endpoint_short(event.source)
        mark = _fmt_hex_uint32(event.hash)
        cpu = _fmt_cpu(event.cpu)
        timestamp = self._timestamp(response.time)
        if output is Output.DICT:
            parts = []
            if self._line != 0:
                parts.append(DICT_SEPARATOR)
            parts.append(f"  TIMESTAMP: {timestamp}\n")
            if opts.node_name:
                parts.append(f"       NODE: {response.node_name}\n")
            parts.append(
                f"       TYPE: {kind}\n"
                f"       FROM: {source}\n"
                f"       MARK: {mark}\n"
                f"        CPU: {cpu}\n"
                f"    MESSAGE: {event.message}\n"
            )
            _write(opts.writer, "".join(parts), "debug event")
        elif output is Output.TAB:
            parts = []
            if self._line == 0:
                parts.append("TIMESTAMP\t")
                if opts.node_name:
                    parts.append("NODE\t")
                parts.append("FROM\t\tTYPE\tCPU/MARK\tMESSAGE\n")
            parts.append(timestamp + _TAB)
            if opts.node_name:
                parts.append(response.node_name + _TAB)
            parts.append(f"{source}\t\t{kind}\t{cpu} {mark}\t{event.message}\n")
            self._tab.write("".join(parts))
        elif output is Output.COMPACT:
            node = f" [{response.node_name}]" if opts.node_name else ""
            _write(
                opts.writer,
                f"{timestamp}{node}: {source} {kind} MARK: {mark} CPU: {cpu} ({event.message})\n",
                "debug event",
            )
        self._line += 1

    def write_get_flows_response(self, response: GetFlowsResponse) -> None:
        """Write a flow or node status response; empty responses are ignored."""
        if response.flow is not None:
            self.write_proto_flow(response)
        elif response.node_status is not None:
            self.write_proto_node_status_event(response)