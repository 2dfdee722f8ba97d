"""Data types shared by the listeners, the parser and the storage layer."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Tuple


class InputProtocol(str, Enum):
    """Transport a message arrived on."""

    UDP = "udp"
    TCP = "tcp"
    TLS = "tls"

    def __str__(self) -> str:
        return self.value


class EventFormat(str, Enum):
    """Syslog dialect a message was recognised as."""

    RFC3164 = "rfc3164"
    RFC5424 = "rfc5424"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_address(address: Tuple[Any, ...]) -> str:
    host, port = str(address[0]), address[1]
    try:
        is_v6 = ipaddress.ip_address(host.split("%", 1)[0]).version == 6
    except ValueError:
        is_v6 = False
    return f"[{host}]:{port}" if is_v6 else f"{host}:{port}"


@dataclass(frozen=True)
class RawMessage:
    """A message as received, before any parsing."""

    payload: str
    source: Optional[Tuple[Any, ...]]
    protocol: InputProtocol
    received_at: datetime = field(default_factory=_utcnow)

    @property
    def source_text(self) -> Optional[str]:
        """The peer address as ``host:port`` (``[host]:port`` for IPv6)."""
        if self.source is None:
            return None
        return _format_address(self.source)


@dataclass(kw_only=True)
class SyslogEvent:
    """A parsed syslog event, valid or not."""

    message: str
    raw_message: str
    format: EventFormat
    received_at: datetime
    protocol: InputProtocol
    valid: bool = True
    timestamp: Optional[datetime] = None
    host: Optional[str] = None
    app_name: Optional[str] = None
    procid: Optional[str] = None
    msgid: Optional[str] = None
    facility: Optional[int] = None
    severity: Optional[int] = None
    structured_data: Optional[Any] = None
    source: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def invalid(cls, raw: RawMessage, error: str) -> "SyslogEvent":
        """Build an event that records a payload which could not be parsed."""
        return cls(
            message=raw.payload,
            raw_message=raw.payload,
            format=EventFormat.UNKNOWN,
            valid=False,
            received_at=raw.received_at,
            source=raw.source_text,
            protocol=raw.protocol,
            error=str(error),
        )