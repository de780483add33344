"""Seq log sink for the Python :mod:`logging` package.

The public surface is small on purpose: attach :class:`SeqHandler` to a logger,
optionally configure :class:`ExtraParameter` values (or build them from
templates with :func:`template_parameter`), and scope properties with
:func:`bind`. The encoder functions are exported for callers with their own
transport.
"""

from __future__ import annotations

from .adapters import SeqDeliveryError, SeqHandler, SeqHttpTransport, template_parameter
from .application.use_cases import create_send_batch, encode_batch
from .domain import (
    DEFAULT_BINDER,
    EVENT_TYPE,
    ExtraParameter,
    LogEvent,
    PropertyBinder,
    escape,
    sanitize_key,
    write_event,
    write_events,
)

bind = DEFAULT_BINDER.bind

__all__ = [
    "EVENT_TYPE",
    "ExtraParameter",
    "LogEvent",
    "PropertyBinder",
    "SeqDeliveryError",
    "SeqHandler",
    "SeqHttpTransport",
    "bind",
    "create_send_batch",
    "encode_batch",
    "escape",
    "sanitize_key",
    "template_parameter",
    "write_event",
    "write_events",
]
