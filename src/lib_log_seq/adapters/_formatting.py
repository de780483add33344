"""Template placeholders for extra parameters.

Why
---
Extra parameters are usually small patterns ("{hostname}", "{ThreadName}",
"{logger_name}:{level}") rather than hand-written callables. Building the
placeholder mapping in one place keeps the names stable for every template.

Contents
--------
* :func:`build_format_payload` - placeholder values for one event.
* :func:`template_parameter` - :class:`ExtraParameter` from a ``str.format``
  template.
"""

from __future__ import annotations

import socket
from string import Formatter
from typing import Any

from lib_log_seq.domain.encoder import render_exception
from lib_log_seq.domain.events import ExtraParameter, LogEvent


def build_format_payload(event: LogEvent) -> dict[str, Any]:
    """Return the mapping of placeholders exposed to parameter templates.

    Event properties are available under their own keys; the fixed names
    below take precedence over properties with the same key.
    """

    payload: dict[str, Any] = {str(key): value for key, value in event.properties.items()}
    payload.update(
        {
            "timestamp": event.timestamp.isoformat(),
            "level": event.level or "",
            "logger_name": event.logger_name,
            "message": event.message,
            "exception": render_exception(event.exception) if event.exception is not None else "",
            "hostname": socket.gethostname(),
        }
    )
    return payload


def template_parameter(name: str, template: str) -> ExtraParameter:
    """Return a parameter rendering ``template`` with :func:`build_format_payload`.

    Rendering never raises for event data: placeholders missing from an event
    render as empty text, and a value that rejects its format spec is rendered
    with ``str``. Malformed template syntax is rejected here instead.

    Raises
    ------
    ValueError
        If ``template`` is not a valid ``str.format`` template.

    Examples
    --------
    >>> from datetime import datetime
    >>> param = template_parameter("Origin", "{logger_name}/{Tenant}")
    >>> event = LogEvent(datetime(2024, 1, 1), "INFO", "hi", "app.db", properties={"Tenant": "acme"})
    >>> param.render(event)
    'app.db/acme'
    >>> param.render(event.replace(properties={}))
    'app.db/'
    >>> template_parameter("Year", "{timestamp:%Y}").render(event)
    '2024-01-01T00:00:00'
    """

    formatter = _LenientFormatter()
    # With every field lenient, only structural errors are left to raise.
    formatter.vformat(template, (), {})

    def layout(event: LogEvent) -> str:
        return formatter.vformat(template, (), build_format_payload(event))

    return ExtraParameter(name=name, layout=layout)


class _LenientFormatter(Formatter):
    """``str.format`` engine that degrades per field instead of raising."""

    def get_value(self, key: int | str, args: Any, kwargs: Any) -> Any:
        if isinstance(key, str):
            return kwargs.get(key, "")
        return ""

    def get_field(self, field_name: str, args: Any, kwargs: Any) -> tuple[Any, str]:
        try:
            return super().get_field(field_name, args, kwargs)
        except (AttributeError, IndexError, KeyError, TypeError):
            return "", field_name

    def convert_field(self, value: Any, conversion: str | None) -> Any:
        try:
            return super().convert_field(value, conversion)
        except ValueError:
            return value

    def format_field(self, value: Any, format_spec: str) -> str:
        try:
            return super().format_field(value, format_spec)
        except (TypeError, ValueError):
            return str(value)


__all__ = ["build_format_payload", "template_parameter"]
