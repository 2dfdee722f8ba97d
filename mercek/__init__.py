"""Syslog message parsing and nginx access-log routing for log storage."""

__version__ = "0.1.0"
__all__ = ["model", "parser", "storage"]