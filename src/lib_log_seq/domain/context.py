"""Context-bound event properties built atop :mod:`contextvars`.

Purpose
-------
Let host code attach properties (request ids, tenant names, ...) to every event
logged inside a scope, the way thread/logical-thread contexts work in other
logging frameworks.

Contents
--------
* :class:`PropertyBinder` - stack manager exposing :meth:`PropertyBinder.bind`.
* :data:`DEFAULT_BINDER` - process-wide binder used by :func:`lib_log_seq.bind`.

System Role
-----------
The logging handler reads :meth:`PropertyBinder.current` when turning a record
into a :class:`~lib_log_seq.domain.events.LogEvent`. Because the stack lives in
a :class:`contextvars.ContextVar`, bindings follow threads and asyncio tasks
without leaking between them.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Iterator, Mapping


class PropertyBinder:
    """Manage property frames bound to the current execution flow.

    Examples
    --------
    >>> binder = PropertyBinder()
    >>> with binder.bind(RequestId="r-1"):
    ...     with binder.bind(Tenant="acme"):
    ...         dict(binder.current())
    {'RequestId': 'r-1', 'Tenant': 'acme'}
    >>> dict(binder.current())
    {}
    """

    _stack_var: contextvars.ContextVar[tuple[Mapping[str, Any], ...]]

    def __init__(self, name: str = "lib_log_seq_properties") -> None:
        self._stack_var = contextvars.ContextVar(name, default=())

    @contextmanager
    def bind(self, **properties: Any) -> Iterator[Mapping[str, Any]]:
        """Layer ``properties`` over the enclosing scope for the ``with`` body."""

        stack = self._stack_var.get()
        merged = dict(stack[-1]) if stack else {}
        merged.update(properties)
        frame = MappingProxyType(merged)
        token = self._stack_var.set(stack + (frame,))
        try:
            yield frame
        finally:
            self._stack_var.reset(token)

    def current(self) -> Mapping[str, Any]:
        """Return the merged properties bound to the current scope."""

        stack = self._stack_var.get()
        return stack[-1] if stack else MappingProxyType({})

    def clear(self) -> None:
        """Remove all bound properties from the current context."""

        self._stack_var.set(())


DEFAULT_BINDER = PropertyBinder()


__all__ = ["DEFAULT_BINDER", "PropertyBinder"]
