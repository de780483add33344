"""Domain records describing a log event and its configured extra parameters.

Purpose
-------
Provide immutable representations of the data the encoder consumes so that
adapters (the logging handler, the CLI) and the encoder agree on one shape.

Contents
--------
* :class:`LogEvent` dataclass.
* :class:`ExtraParameter` dataclass binding a name to an event layout.

System Role
-----------
Sits in the domain layer; nothing here performs I/O or serialisation.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable

Layout = Callable[["LogEvent"], "str | None"]


@dataclass(slots=True, frozen=True)
class LogEvent:
    """Immutable log event handed to the encoder.

    Attributes
    ----------
    timestamp:
        Time of the event. Naive values are local wall-clock time; the encoder
        pairs them with the process's current UTC offset.
    level:
        Level name (``DEBUG``, ``INFO``, ``WARN``, ``ERROR``, ``FATAL``);
        anything else is tolerated and encoded as ``Information``.
    message:
        Fully rendered message text.
    logger_name:
        Name of the originating logger.
    exception:
        Optional exception object or preformatted exception text.
    properties:
        Shallow copy of the contextual key/value pairs, in insertion order.
    """

    timestamp: datetime
    level: str | None
    message: str
    logger_name: str
    exception: BaseException | str | None = None
    properties: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", dict(self.properties))

    def replace(self, **changes: Any) -> "LogEvent":
        """Return a copied event with ``changes`` applied."""

        return replace(self, **changes)


@dataclass(slots=True, frozen=True)
class ExtraParameter:
    """Named, event-derived value added to every event's properties.

    ``layout`` receives the event and returns the textual value (or ``None``
    for a JSON ``null``). The returned text goes through the same literal
    inference as any other property value.

    Examples
    --------
    >>> param = ExtraParameter("App", lambda event: "billing")
    >>> param.render(None)
    'billing'
    """

    name: str
    layout: Layout

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("parameter name must not be empty")

    def render(self, event: LogEvent) -> str | None:
        """Apply the layout to ``event``."""

        return self.layout(event)


__all__ = ["ExtraParameter", "Layout", "LogEvent"]
