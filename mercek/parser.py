"""Parsing of RFC 3164 and RFC 5424 syslog messages."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from mercek.model import EventFormat, RawMessage, SyslogEvent

_MONTHS = {
    name: number
    for number, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun",
         "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}
_MONTH_PREFIXES = {
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
}

_UNSIGNED = re.compile(r"\+?[0-9]+")
_BSD_DAY = re.compile(r"[0-9]{1,2}")
_BSD_TIME = re.compile(r"([0-9]{1,2}):([0-9]{1,2}):([0-9]{1,2})")
_RFC3339 = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})[Tt ]"
    r"([0-9]{2}):([0-9]{2}):([0-9]{2})(?:\.([0-9]+))?"
    r"([Zz]|[+-][0-9]{2}:[0-9]{2})"
)


def _parse_unsigned(text: str, limit: int) -> Optional[int]:
    if not _UNSIGNED.fullmatch(text):
        return None
    value = int(text)
    return value if value <= limit else None


def parse(raw: RawMessage) -> SyslogEvent:
    """Parse a raw message; failures yield an event marked invalid."""
    message = raw.payload.strip()
    pri = parse_pri(message)
    if pri is None:
        return SyslogEvent.invalid(raw, "missing PRI")
    priority, rest = pri
    facility, severity = divmod(priority, 8)

    fmt = detect_format(rest)
    if fmt is EventFormat.RFC5424:
        return _parse_rfc5424(raw, rest, facility, severity)
    if fmt is EventFormat.RFC3164:
        return _parse_rfc3164(raw, rest, facility, severity)
    return SyslogEvent.invalid(raw, "unknown syslog format")


def parse_pri(message: str) -> Optional[Tuple[int, str]]:
    """Split ``<PRI>`` off a message, returning the priority and the rest."""
    end = message.find(">")
    if end < 0 or not message.startswith("<") or end <= 1:
        return None
    priority = _parse_unsigned(message[1:end], 255)
    if priority is None:
        return None
    return priority, message[end + 1:].lstrip()


def detect_format(rest: str) -> EventFormat:
    """Guess the dialect of the text that follows the PRI."""
    first, sep, _ = rest.partition(" ")
    if sep and _parse_unsigned(first, 65535) is not None:
        return EventFormat.RFC5424
    if len(rest) >= 16 and _is_rfc3164_timestamp(rest[:15]):
        return EventFormat.RFC3164
    return EventFormat.UNKNOWN


def _is_rfc3164_timestamp(text: str) -> bool:
    trimmed = text.strip()
    return len(trimmed) >= 12 and trimmed[:3] in _MONTH_PREFIXES


def _consume_token(text: str) -> Optional[Tuple[str, str]]:
    text = text.lstrip()
    if not text:
        return None
    parts = text.split(None, 1)
    token = parts[0]
    return token, text[len(token):]


def _bsd_timestamp(month: str, day: str, clock: str) -> Optional[datetime]:
    month_number = _MONTHS.get(month.lower())
    time_match = _BSD_TIME.fullmatch(clock)
    if month_number is None or not _BSD_DAY.fullmatch(day) or time_match is None:
        return None
    hour, minute, second = (int(group) for group in time_match.groups())
    try:
        return datetime(
            datetime.now(timezone.utc).year,
            month_number,
            int(day),
            hour,
            minute,
            second,
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None


def _parse_rfc3164(
    raw: RawMessage, rest: str, facility: int, severity: int
) -> SyslogEvent:
    tokens: List[str] = []
    remainder = rest
    for _ in range(4):
        consumed = _consume_token(remainder)
        if consumed is None:
            return SyslogEvent.invalid(raw, "invalid RFC3164 payload")
        token, remainder = consumed
        tokens.append(token)
    month, day, clock, host = tokens

    if len(month) != 3 or ":" not in clock:
        return SyslogEvent.invalid(raw, "invalid RFC3164 payload")

    app_name, procid, message = split_tag_and_message(remainder.strip())
    return SyslogEvent(
        timestamp=_bsd_timestamp(month, day, clock),
        host=host,
        app_name=app_name,
        procid=procid,
        facility=facility,
        severity=severity,
        message=message,
        raw_message=raw.payload,
        format=EventFormat.RFC3164,
        valid=True,
        received_at=raw.received_at,
        source=raw.source_text,
        protocol=raw.protocol,
    )


def _parse_rfc3339(text: str) -> Optional[datetime]:
    match = _RFC3339.fullmatch(text)
    if match is None:
        return None
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    micros = int((fraction or "0")[:6].ljust(6, "0"))
    if offset in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6]))
        try:
            tz = timezone(sign * delta)
        except ValueError:
            return None
    try:
        moment = datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second), micros, tzinfo=tz,
        )
    except ValueError:
        return None
    return moment.astimezone(timezone.utc)


def _nil_to_none(value: str) -> Optional[str]:
    return None if value == "-" else value


def _parse_rfc5424(
    raw: RawMessage, rest: str, facility: int, severity: int
) -> SyslogEvent:
    parts = rest.split(" ", 7)
    if len(parts) < 7:
        return SyslogEvent.invalid(raw, "invalid RFC5424 header")
    _version, ts, host, app, procid, msgid, sd_and_msg = parts[:7]

    timestamp = None if ts == "-" else _parse_rfc3339(ts)
    structured_data, message = parse_structured_data(sd_and_msg)

    return SyslogEvent(
        timestamp=timestamp,
        host=_nil_to_none(host),
        app_name=_nil_to_none(app),
        procid=_nil_to_none(procid),
        msgid=_nil_to_none(msgid),
        facility=facility,
        severity=severity,
        structured_data=structured_data,
        message=message,
        raw_message=raw.payload,
        format=EventFormat.RFC5424,
        valid=True,
        received_at=raw.received_at,
        source=raw.source_text,
        protocol=raw.protocol,
    )


def parse_structured_data(
    text: str,
) -> Tuple[Optional[List[Dict[str, Any]]], str]:
    """Split RFC 5424 structured data from the message that follows it."""
    text = text.strip()
    if text == "-":
        return None, ""
    if not text.startswith("["):
        return None, text

    depth = 0
    for index, char in enumerate(text):
        if char == "[":
            depth += 1
        elif char == "]":
            depth = max(depth - 1, 0)
            if depth == 0:
                end = index + 1
                return _sd_to_json(text[:end]), text[end:].lstrip()
    return None, text


def _sd_sections(sd: str):
    current: List[str] = []
    depth = 0
    for char in sd:
        if char == "[":
            depth += 1
        if depth > 0:
            current.append(char)
        if char == "]":
            depth = max(depth - 1, 0)
            if depth == 0 and current:
                yield "".join(current)
                current = []


def _sd_to_json(sd: str) -> List[Dict[str, Any]]:
    elements = []
    for section in _sd_sections(sd):
        words = section.strip("[]").split()
        element: Dict[str, Any] = {"id": words[0] if words else ""}
        for pair in words[1:]:
            key, sep, value = pair.partition("=")
            if sep:
                element[key] = value.strip('"')
        elements.append(element)
    return elements


def split_tag_and_message(
    message: str,
) -> Tuple[Optional[str], Optional[str], str]:
    """Split an RFC 3164 ``tag[pid]: body`` into app name, pid and body."""
    tag, sep, body = message.partition(":")
    if not sep:
        return None, None, message
    tag = tag.strip()
    app, bracket, pid = tag.partition("[")
    if bracket:
        return app.strip(), pid.rstrip("]").strip(), body.strip()
    return tag, None, body.strip()