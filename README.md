# mercek

Parsing and routing of syslog messages, for collectors that store them in a
database. The package has no dependencies outside the standard library.

## Modules

### `mercek.model`

- `InputProtocol`: the transport a message arrived on (`UDP`, `TCP`, `TLS`;
  values `"udp"`, `"tcp"`, `"tls"`).
- `EventFormat`: the dialect a message was recognised as (`RFC3164`,
  `RFC5424`, `UNKNOWN`).
- `RawMessage`: a payload as received, with its `source` address tuple (or
  `None`), its `protocol` and its `received_at` time (now, in UTC, if not
  given). `source_text` renders the address as `host:port`, or `[host]:port`
  for IPv6.
- `SyslogEvent`: the parsed result. `SyslogEvent.invalid(raw, error)` builds
  the event recorded for a payload that could not be parsed: `valid` is false,
  `format` is `UNKNOWN`, `message` and `raw_message` hold the payload and
  `error` holds the reason.

### `mercek.parser`

- `parse(raw)` turns a `RawMessage` into a `SyslogEvent`. It never raises for
  bad input: an unparseable message gives an invalid event whose `error` is
  one of `"missing PRI"`, `"unknown syslog format"`,
  `"invalid RFC3164 payload"` or `"invalid RFC5424 header"`.
- `parse_pri(message)` splits the `<PRI>` header (0 to 255) off a message and
  returns `(priority, rest)`, or `None`. The priority gives
  `facility = priority // 8` and `severity = priority % 8`.
- `detect_format(rest)` returns `EventFormat.RFC5424` when the text after the
  PRI starts with a numeric version, `EventFormat.RFC3164` when it starts with
  a BSD-style timestamp (`Mmm dd hh:mm:ss`), and `EventFormat.UNKNOWN`
  otherwise.
- `parse_structured_data(text)` splits RFC 5424 structured data from the
  message that follows it. The structured data comes back as a list of dicts,
  each with an `"id"` key and one key per `name="value"` parameter.
- `split_tag_and_message(message)` splits an RFC 3164 `tag[pid]: body` into
  `(app_name, procid, body)`.

RFC 5424 timestamps are converted to UTC. RFC 3164 timestamps carry no year,
so the current year is used and the time is taken as UTC; an unparseable
timestamp leaves `timestamp` as `None` without making the event invalid.

### `mercek.storage`

- `NginxAccessLog`: the fields of an nginx access-log line in the combined
  format, with the request line split into method, path and protocol.
- `tokenize_nginx_line(message)` splits a line into plain words, `"quoted"`
  strings and `[bracketed]` fields.
- `parse_nginx_access_log(message)` returns an `NginxAccessLog`, or `None`
  when the line has fewer than seven fields. A `-` field becomes `None`.
- `split_request_line(line)` splits `METHOD PATH PROTOCOL`.
- `event_write_target(event)` decides where an event belongs: for an event
  whose `app_name` is `nginx` (any case) and whose message parses as an access
  log, it returns the `NginxAccessLog`, meaning the event goes to the nginx
  access table only; otherwise it returns `None`, meaning the syslog table.
- `next_month(year, month)` returns the following `(year, month)`.
- `partition_statements(year, month)` returns the two
  `CREATE TABLE IF NOT EXISTS ... PARTITION OF syslog_events` statements for
  the given month and the one after it.

## Installation

```
pip install .
```

To run the tests, install with the `test` extra and run `pytest`:

```
pip install ".[test]"
pytest
```

## Example

```python
from datetime import datetime, timezone

from mercek.model import InputProtocol, RawMessage
from mercek.parser import parse

raw = RawMessage(
    payload="<13>Feb  5 17:32:18 host app[123]: test message",
    source=None,
    protocol=InputProtocol.UDP,
    received_at=datetime.now(timezone.utc),
)
event = parse(raw)
assert event.valid
assert event.host == "host"
assert event.app_name == "app"
assert event.procid == "123"
assert event.message == "test message"
```

Parsing an nginx access-log line:

```python
from mercek.storage import parse_nginx_access_log

log = parse_nginx_access_log(
    '127.0.0.1 - - [22/Apr/2026:12:34:56 +0000] "GET /healthz HTTP/1.1" 200 12 "-" "curl/8.5.0"'
)
assert log.request_method == "GET"
assert log.status == 200
```

## What this package does not do

It holds the parsing and routing logic only. It does not listen on UDP, TCP
or TLS sockets, does not connect to or write to a database (it only produces
the partition DDL and decides which table an event belongs in), does not
serve health or metrics endpoints, and installs no command to run.