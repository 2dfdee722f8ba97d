from datetime import datetime, timezone

import pytest

from mercek.model import EventFormat, InputProtocol, RawMessage
from mercek.parser import (
    detect_format,
    parse,
    parse_pri,
    parse_structured_data,
    split_tag_and_message,
)


def _raw(payload, protocol=InputProtocol.UDP, source=None):
    return RawMessage(payload, source, protocol, datetime.now(timezone.utc))


def test_parses_rfc5424():
    event = parse(
        _raw(
            "<34>1 2024-03-01T12:00:00Z myhost app 123 ID47 "
            "[exampleSDID@32473 iut=3 eventSource=Application] hello",
            InputProtocol.TCP,
        )
    )
    assert event.valid
    assert event.format is EventFormat.RFC5424
    assert event.host == "myhost"
    assert event.app_name == "app"
    assert event.procid == "123"
    assert event.msgid == "ID47"
    assert event.timestamp == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert event.facility * 8 + event.severity == 34
    assert 0 <= event.severity < 8


def test_parses_rfc3164():
    event = parse(_raw("<13>Feb  5 17:32:18 host app[123]: test message"))
    assert event.valid
    assert event.format is EventFormat.RFC3164
    assert event.host == "host"
    assert event.app_name == "app"
    assert event.procid == "123"
    assert event.message == "test message"
    assert event.facility * 8 + event.severity == 13


def test_rfc3164_timestamp_uses_current_year():
    event = parse(_raw("<13>Feb  5 17:32:18 host app[123]: test message"))
    stamp = event.timestamp
    assert stamp.year == datetime.now(timezone.utc).year
    assert (stamp.month, stamp.day) == (2, 5)
    assert (stamp.hour, stamp.minute, stamp.second) == (17, 32, 18)


def test_marks_invalid_messages():
    event = parse(_raw("no-pri payload"))
    assert not event.valid
    assert event.format is EventFormat.UNKNOWN
    assert event.error == "missing PRI"
    assert event.raw_message == "no-pri payload"


def test_unknown_format_after_pri():
    event = parse(_raw("<13>hello"))
    assert not event.valid
    assert event.error == "unknown syslog format"


def test_rfc3164_without_time_colon_is_invalid():
    event = parse(_raw("<13>Feb  5 1732 host app: x"))
    assert not event.valid
    assert event.error == "invalid RFC3164 payload"


def test_short_rfc5424_header_is_invalid():
    event = parse(_raw("<13>1 2024-03-01T12:00:00Z host"))
    assert not event.valid
    assert event.error == "invalid RFC5424 header"


def test_rfc5424_nil_values():
    event = parse(
        _raw("<165>1 2003-10-11T22:14:15.003Z mymachine.example.com evntslog - ID47 -")
    )
    assert event.valid
    assert event.procid is None
    assert event.structured_data is None
    assert event.message == ""
    assert event.timestamp == datetime(
        2003, 10, 11, 22, 14, 15, 3000, tzinfo=timezone.utc
    )


def test_rfc5424_nil_timestamp_and_plain_message():
    event = parse(_raw("<34>1 - host app - - hello"))
    assert event.timestamp is None
    assert event.message == "hello"
    assert event.app_name == "app"


def test_source_is_carried_into_event():
    event = parse(_raw("<34>1 - host app - - hello", source=("192.0.2.7", 514)))
    assert event.source == "192.0.2.7:514"
    assert event.protocol is InputProtocol.UDP


@pytest.mark.parametrize(
    "text, expected",
    [
        ("<13>rest", (13, "rest")),
        ("<0>  x", (0, "x")),
        ("<191>1 y", (191, "1 y")),
    ],
)
def test_parse_pri_accepts(text, expected):
    assert parse_pri(text) == expected


@pytest.mark.parametrize("text", ["", "<>x", "x<13>y", "<256>x", "<abc>x", "<13"])
def test_parse_pri_rejects(text):
    assert parse_pri(text) is None


@pytest.mark.parametrize(
    "rest, expected",
    [
        ("1 2024-03-01T12:00:00Z h a p m -", EventFormat.RFC5424),
        ("Feb  5 17:32:18 host app: x", EventFormat.RFC3164),
        ("hello world", EventFormat.UNKNOWN),
        ("70000 x", EventFormat.UNKNOWN),
    ],
)
def test_detect_format(rest, expected):
    assert detect_format(rest) is expected


def test_structured_data_nil_and_plain():
    assert parse_structured_data("-") == (None, "")
    assert parse_structured_data("  just text ") == (None, "just text")


def test_structured_data_unterminated():
    assert parse_structured_data("[open x=1") == (None, "[open x=1")


@pytest.mark.parametrize(
    "message, expected",
    [
        ("app[123]: test message", ("app", "123", "test message")),
        ("sshd: accepted", ("sshd", None, "accepted")),
        ("no tag here", (None, None, "no tag here")),
    ],
)
def test_split_tag_and_message(message, expected):
    assert split_tag_and_message(message) == expected