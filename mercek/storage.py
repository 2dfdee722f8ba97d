"""Routing and preparation of parsed events for the PostgreSQL tables."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from mercek.model import SyslogEvent

_NGINX_FIELD = re.compile(r'"([^"]*)"?|\[([^\]]*)\]?|(\S+)')
_SIGNED = re.compile(r"[+-]?[0-9]+")

_I32_RANGE = (-(2**31), 2**31 - 1)
_I64_RANGE = (-(2**63), 2**63 - 1)


@dataclass(frozen=True)
class NginxAccessLog:
    """Fields of an nginx access log line in the combined format."""

    remote_addr: str
    remote_ident: Optional[str] = None
    remote_user: Optional[str] = None
    time_local: Optional[str] = None
    request_line: Optional[str] = None
    request_method: Optional[str] = None
    request_path: Optional[str] = None
    request_protocol: Optional[str] = None
    status: Optional[int] = None
    body_bytes_sent: Optional[int] = None
    http_referer: Optional[str] = None
    http_user_agent: Optional[str] = None
    http_x_forwarded_for: Optional[str] = None


def tokenize_nginx_line(message: str) -> List[str]:
    """Split a log line into words, quoted strings and bracketed fields."""
    fields = []
    for match in _NGINX_FIELD.finditer(message):
        quoted, bracketed, plain = match.groups()
        if quoted is not None:
            fields.append(quoted)
        elif bracketed is not None:
            fields.append(bracketed)
        else:
            fields.append(plain)
    return fields


def split_request_line(
    line: str,
) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Split ``METHOD PATH PROTOCOL``; missing parts come back as None."""
    parts = line.split()[:3]
    parts += [None] * (3 - len(parts))
    method, path, protocol = parts
    return method, path, protocol


def _none_if_dash(value: Optional[str]) -> Optional[str]:
    return None if value is None or value == "-" else value


def _parse_int(value: Optional[str], bounds: Tuple[int, int]) -> Optional[int]:
    if value is None or not _SIGNED.fullmatch(value):
        return None
    number = int(value)
    low, high = bounds
    return number if low <= number <= high else None


def parse_nginx_access_log(message: str) -> Optional[NginxAccessLog]:
    """Parse an nginx access log line, or return None if it is too short."""
    fields = tokenize_nginx_line(message)
    if len(fields) < 7:
        return None

    def field(index: int) -> Optional[str]:
        return fields[index] if index < len(fields) else None

    request_line = _none_if_dash(field(4))
    if request_line is not None:
        method, path, protocol = split_request_line(request_line)
    else:
        method = path = protocol = None

    return NginxAccessLog(
        remote_addr=fields[0],
        remote_ident=_none_if_dash(field(1)),
        remote_user=_none_if_dash(field(2)),
        time_local=_none_if_dash(field(3)),
        request_line=request_line,
        request_method=method,
        request_path=path,
        request_protocol=protocol,
        status=_parse_int(field(5), _I32_RANGE),
        body_bytes_sent=_parse_int(_none_if_dash(field(6)), _I64_RANGE),
        http_referer=_none_if_dash(field(7)),
        http_user_agent=_none_if_dash(field(8)),
        http_x_forwarded_for=_none_if_dash(field(9)),
    )


def event_write_target(event: SyslogEvent) -> Optional[NginxAccessLog]:
    """Decide where an event is stored.

    Returns the parsed access log when the event belongs in the nginx
    access table alone, or None when it goes to the syslog table.
    """
    app_name = event.app_name
    is_nginx = (
        app_name is not None
        and app_name.isascii()
        and app_name.lower() == "nginx"
    )
    if not is_nginx:
        return None
    return parse_nginx_access_log(event.message)


def next_month(year: int, month: int) -> Tuple[int, int]:
    """Return the year and month that follow the given month."""
    if month == 12:
        return year + 1, 1
    return year, month + 1


def partition_statements(year: int, month: int) -> List[str]:
    """DDL creating the partitions for the given month and the one after."""
    following = next_month(year, month)
    after = next_month(*following)
    statements = []
    for (y, m), (end_y, end_m) in (((year, month), following), (following, after)):
        name = f"syslog_events_{y}_{m:02d}"
        start = f"{y:04d}-{m:02d}-01"
        end = f"{end_y:04d}-{end_m:02d}-01"
        statements.append(
            f"CREATE TABLE IF NOT EXISTS {name} PARTITION OF syslog_events "
            f"FOR VALUES FROM ('{start}') TO ('{end}');"
        )
    return statements