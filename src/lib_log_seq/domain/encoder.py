"""Streaming encoder turning log events into Seq raw-event JSON.

Purpose
-------
Write each :class:`~lib_log_seq.domain.events.LogEvent` as one JSON object of
the Seq raw-events format directly into a text sink, without building an
intermediate document.

Contents
--------
* :data:`EVENT_TYPE` - constant identifying this client's wire format.
* :func:`write_events` - comma-separated events for one batch.
* :func:`write_event` - one event object.
* :func:`sanitize_key` - property-key cleanup.
* :func:`render_exception` - default text of an exception.

System Role
-----------
The only serialisation path of the package. The send-batch use case wraps the
output in the ``{"events":[...]}`` envelope before handing bytes to the
transport.

Alignment Notes
---------------
Object layout::

    {"Timestamp":"...","Level":"...","EventType":67689,"MessageTemplate":"...",
     "Exception":"...","Properties":{<parameters>,"Logger":"...",<properties>}}

``Exception`` is omitted when the event carries none. Inside ``Properties``
the first occurrence of a key wins.
"""

from __future__ import annotations

import traceback
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

from .events import ExtraParameter, LogEvent
from .levels import seq_level
from .literals import TextSink, format_instant, write_literal, write_string

EVENT_TYPE = 0x00010649
LOGGER_PROPERTY = "Logger"


def current_utc_offset() -> timedelta:
    """Return the UTC offset currently in force for this process."""

    offset = datetime.now().astimezone().utcoffset()
    return offset if offset is not None else timedelta(0)


def sanitize_key(key: str) -> str:
    """Return ``key`` reduced to letters, decimal digits and ``_``.

    ``:`` separators become ``_`` before the filter runs.

    Examples
    --------
    >>> sanitize_key("log4net:HostName")
    'log4net_HostName'
    >>> sanitize_key("user-id (primary)")
    'useridprimary'
    """

    replaced = key.replace(":", "_")
    return "".join(char for char in replaced if char == "_" or char.isalpha() or char.isdecimal())


def render_exception(exception: BaseException | str) -> str:
    """Return the human-readable text (message and stack trace) of ``exception``."""

    if isinstance(exception, BaseException):
        lines = traceback.format_exception(type(exception), exception, exception.__traceback__)
        return "".join(lines).rstrip("\n")
    return str(exception)


def _require_sink(out: Any) -> None:
    if out is None or not callable(getattr(out, "write", None)):
        raise TypeError("out must be a text sink with a write(str) method")


def _resolve_timestamp(timestamp: datetime, offset: timedelta | None) -> datetime:
    # Naive timestamps take the offset in force now, not the one in force when
    # the event was logged.
    if timestamp.tzinfo is not None and timestamp.utcoffset() is not None:
        return timestamp
    if offset is None:
        offset = current_utc_offset()
    return timestamp.replace(tzinfo=timezone(offset))


class _PropertyWriter:
    """Write ``"name":literal`` pairs, skipping names already written."""

    def __init__(self, out: TextSink) -> None:
        self._out = out
        self._seen: set[str] = set()
        self._delimiter = ""

    def write(self, name: str, value: Any) -> bool:
        if name in self._seen:
            return False
        self._seen.add(name)
        self._out.write(self._delimiter)
        write_string(name, self._out)
        self._out.write(":")
        write_literal(value, self._out)
        self._delimiter = ","
        return True


def write_event(
    event: LogEvent,
    parameters: Sequence[ExtraParameter],
    out: TextSink,
    *,
    offset: timedelta | None = None,
) -> None:
    """Write ``event`` as one JSON object to ``out``.

    Parameters
    ----------
    event:
        Event to encode.
    parameters:
        Extra parameters, rendered against ``event`` and written first inside
        ``Properties`` in the given order.
    out:
        Text sink receiving the JSON text.
    offset:
        UTC offset paired with naive timestamps; defaults to the process's
        current offset.

    Raises
    ------
    TypeError
        If ``event`` is ``None`` or ``out`` has no ``write`` method.

    Examples
    --------
    >>> from io import StringIO
    >>> buffer = StringIO()
    >>> event = LogEvent(datetime(2024, 1, 15, 10, 0), "WARN", "Hello {World}", "app")
    >>> write_event(event, (), buffer, offset=timedelta(0))
    >>> buffer.getvalue()
    '{"Timestamp":"2024-01-15T10:00:00.0000000+00:00","Level":"Warning","EventType":67689,"MessageTemplate":"Hello {{World}}","Properties":{"Logger":"app"}}'
    """

    _require_sink(out)
    if event is None:
        raise TypeError("event must not be None")

    timestamp = _resolve_timestamp(event.timestamp, offset)
    message = event.message.replace("{", "{{").replace("}", "}}")

    out.write('{"Timestamp":"')
    out.write(format_instant(timestamp))
    out.write('","Level":')
    write_string(seq_level(event.level), out)
    out.write(f',"EventType":{EVENT_TYPE},"MessageTemplate":')
    write_string(message, out)
    if event.exception is not None:
        out.write(',"Exception":')
        write_string(render_exception(event.exception), out)

    out.write(',"Properties":{')
    properties = _PropertyWriter(out)
    for parameter in parameters:
        properties.write(parameter.name, parameter.render(event))
    properties.write(LOGGER_PROPERTY, event.logger_name)
    for key, value in event.properties.items():
        properties.write(sanitize_key(str(key)), value)
    out.write("}}")


def write_events(
    events: Iterable[LogEvent],
    parameters: Sequence[ExtraParameter],
    out: TextSink,
    *,
    offset: timedelta | None = None,
) -> int:
    """Write ``events`` to ``out`` separated by commas; return the count.

    The ``{"events":[...]}`` envelope is not written. An empty iterable writes
    nothing. The current UTC offset is sampled once per call.
    """

    _require_sink(out)
    if offset is None:
        offset = current_utc_offset()
    delimiter = ""
    count = 0
    for event in events:
        out.write(delimiter)
        delimiter = ","
        write_event(event, parameters, out, offset=offset)
        count += 1
    return count


__all__ = [
    "EVENT_TYPE",
    "LOGGER_PROPERTY",
    "current_utc_offset",
    "render_exception",
    "sanitize_key",
    "write_event",
    "write_events",
]
