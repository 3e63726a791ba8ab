# hubblecli

Client-side building blocks for observing recent network traffic in a
cluster: parsing time ranges, rendering flows and events in several output
formats, and summarising server status and peer changes.

The package uses only the standard library.

## Modules

- `hubblecli.timeutil` – `from_string(value, now=None)` turns a duration in
  the past (`"10s"`, `"5m"`, `"20h"`, parsed by `parse_duration`) or an
  RFC 3339 / RFC 1123Z timestamp into a datetime, and raises `ValueError` for
  anything else. `format_name_to_layout(name)` maps a name from
  `FORMAT_NAMES` (`StampMilli`, `RFC3339`, `RFC3339Milli`, `RFC3339Micro`,
  `RFC3339Nano`, `RFC1123Z`, matched without regard to case) to a layout;
  unknown names give `STAMP_MILLI`. `format_time(moment, layout)` formats a
  datetime with such a layout.
- `hubblecli.defaults` – the default server address (`SERVER_ADDRESS`),
  timeouts in seconds (`DIAL_TIMEOUT`, `REQUEST_TIMEOUT`), print counts, and
  `get_socket_path()`, which honours the `HUBBLE_DEFAULT_SOCKET_PATH`
  environment variable. `config_dir()`, `config_dir_fallback()` and
  `config_file()` return the configuration locations, or `None` when they
  cannot be determined.
- `hubblecli.logger` – `initialize(debug)` sets up the `hubble` logger once,
  at debug or info level, writing `key=value` lines; `get_logger()` returns
  it and raises `RuntimeError` if it was never initialised.
- `hubblecli.version` – `BuildInfo(version, git_branch, git_hash)` and
  `version_line(root_name, info)`, which describes the version, the Python
  runtime and the platform.
- `hubblecli.color` – `ColorMode` (`auto`, `always`, `never`; anything else
  means `auto`) and `Colorer`, which wraps hosts, ports and verdicts in ANSI
  colour codes when enabled. In `auto` mode colour follows whether standard
  output is a terminal, and is off when `NO_COLOR` is set or `TERM=dumb`.
- `hubblecli.options` – `Output` (`TAB`, `JSON`, `COMPACT`, `DICT`, `JSONPB`)
  and `PrinterOptions`, with `output`, `writer`, `err_writer`,
  `ignore_stderr`, `enable_debug`, `enable_ip_translation`, `node_name`,
  `time_format` and `color`.
- `hubblecli.flow` – dataclasses for flows, agent events, debug events, node
  status events and the three response types, their enums, `Timestamp`,
  `to_json_dict` for the protobuf JSON mapping, and the names of trace
  observation points, drop reasons and policy match types.
- `hubblecli.printer` – `Printer`, which writes flows and events in the
  chosen format, plus `get_flow_type`, `fmt_timestamp`, `join_with_cut_off`
  and `get_agent_event_details`.
- `hubblecli.peer` – `ChangeNotification` and `process_response`, which
  writes one line per peer change, and `run_peer`, which prints every
  notification from an iterable until it ends or is cancelled and returns
  the count.
- `hubblecli.status` – `health_message` and `format_status`, which builds the
  health and server status report and raises `NotHealthyError` when the
  server is not serving.

## Examples

```python
from datetime import datetime, timezone

from hubblecli.timeutil import format_name_to_layout, format_time, from_string

now = datetime(2019, 7, 1, 14, 0, tzinfo=timezone.utc)
since = from_string("5m", now)
print(format_time(since, format_name_to_layout("RFC3339")))
# 2019-07-01T13:55:00Z
```

```python
from hubblecli.flow import (
    IP, TCP, CiliumEventType, Flow, GetFlowsResponse, Layer4, Timestamp, Verdict,
)
from hubblecli.options import Output, PrinterOptions
from hubblecli.printer import Printer

flow = Flow(
    time=Timestamp(1234, 567800000),
    verdict=Verdict.DROPPED,
    ip=IP(source="1.1.1.1", destination="2.2.2.2"),
    l4=Layer4(tcp=TCP(source_port=31793, destination_port=8080)),
    event_type=CiliumEventType(type=1, sub_type=133),
    summary="TCP Flags: SYN",
    is_reply=False,
)
with Printer(PrinterOptions(output=Output.COMPACT, color="never")) as printer:
    printer.write_proto_flow(GetFlowsResponse(flow=flow))
# Jan  1 00:20:34.567: 1.1.1.1:31793 -> 2.2.2.2:8080 Policy denied DROPPED (TCP Flags: SYN)
```

## Output formats

- **tab** – aligned columns with a header row, written when the printer is
  closed; colours are always off.
- **compact** – one line per flow or event; for flows `->`, `<-` or `<>`
  shows the direction, and replies have source and destination swapped.
- **dict** – one `KEY: value` block per flow or event, separated by a dashed
  line.
- **json** – the flow or event alone as one JSON object per line.
- **jsonpb** – the whole response as one JSON object per line.

Node status events go to the error stream. Outside debug mode only error
and unavailability events are written.

## What this package does not do

There is no command-line program and no network client. The package does
not connect to a server, open streams or perform health checks; callers
supply the flows, events, notifications, health status and server status
themselves, and the package formats them. Configuration files are only
located, never read.