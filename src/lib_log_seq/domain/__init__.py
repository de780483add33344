"""Domain entities, value objects, and the event encoder."""

from __future__ import annotations

from .context import DEFAULT_BINDER, PropertyBinder
from .encoder import EVENT_TYPE, sanitize_key, write_event, write_events
from .events import ExtraParameter, LogEvent
from .levels import LogLevel, seq_level
from .literals import LiteralKind, TextSink, escape

__all__ = [
    "DEFAULT_BINDER",
    "EVENT_TYPE",
    "ExtraParameter",
    "LiteralKind",
    "LogEvent",
    "LogLevel",
    "PropertyBinder",
    "TextSink",
    "escape",
    "sanitize_key",
    "seq_level",
    "write_event",
    "write_events",
]
