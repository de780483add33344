"""Stdlib :mod:`logging` handler buffering records and shipping them to Seq.

Purpose
-------
Plug the encoder into ordinary ``logging`` configuration: records become
:class:`~lib_log_seq.domain.events.LogEvent` objects at emission time, are
buffered, and are sent as one batch whenever the buffer fills or the handler is
flushed or closed.

Contents
--------
* :class:`SeqHandler` - :class:`logging.handlers.BufferingHandler` subclass.

System Role
-----------
Outer adapter composing configuration, the HTTP transport, and the send-batch
use case. Delivery failures never reach application code; they are reported
through :meth:`logging.Handler.handleError` and the optional diagnostic hook.

Alignment Notes
---------------
Records emitted while a batch is in flight (``requests``/``urllib3`` debug
output, for instance) are kept for the next batch and never start a nested
flush. Records from this package's own loggers are ignored.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import Sequence
from datetime import datetime
from logging.handlers import BufferingHandler
from typing import Any, Callable

from lib_log_seq.application.ports.transport import TransportPort
from lib_log_seq.application.use_cases.send_batch import SendBatch, create_send_batch
from lib_log_seq.config import SeqSettings, load_settings
from lib_log_seq.domain.context import DEFAULT_BINDER, PropertyBinder
from lib_log_seq.domain.events import ExtraParameter, LogEvent
from lib_log_seq.domain.levels import level_name_for_record

from .http_transport import SeqHttpTransport

LOGGER = logging.getLogger(__name__)

Diagnostic = Callable[[str, dict[str, Any]], None]

_PACKAGE_LOGGER = "lib_log_seq"
_DEFAULT_FORMATTER = logging.Formatter()
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))) | {
    "asctime",
    "message",
    "taskName",
}
# Attributes every LogRecord carries; anything else came from ``extra=``.


class SeqHandler(BufferingHandler):
    """Buffer log records and POST them to a Seq server in batches.

    Parameters
    ----------
    server_url, api_key, timeout, buffer_size:
        Sink settings; omitted values come from the ``SEQ_*`` environment
        variables (see :func:`lib_log_seq.config.load_settings`). Without a
        server URL (and without ``transport``) full buffers are discarded.
    parameters:
        Extra parameters written first into every event's ``Properties``.
    binder:
        Source of context-bound properties; defaults to
        :data:`~lib_log_seq.domain.context.DEFAULT_BINDER`.
    transport:
        Injected transport, replacing the HTTP transport built from settings.
        Injected transports are not closed by :meth:`close`.
    diagnostic:
        Optional callback receiving ``("send_failed", {...})`` and
        ``("batch_discarded", {...})`` notifications.
    level:
        Handler threshold, as for any :class:`logging.Handler`.

    Examples
    --------
    >>> class MemoryTransport:
    ...     def __init__(self):
    ...         self.payloads = []
    ...     def send(self, payload):
    ...         self.payloads.append(payload)
    ...     def close(self):
    ...         pass
    >>> transport = MemoryTransport()
    >>> handler = SeqHandler(transport=transport, buffer_size=2)
    >>> logger = logging.getLogger("doctest.seq")
    >>> logger.addHandler(handler)
    >>> logger.warning("one")
    >>> logger.warning("two")
    >>> len(transport.payloads)
    1
    >>> logger.removeHandler(handler)
    >>> handler.close()
    """

    def __init__(
        self,
        server_url: str | None = None,
        *,
        api_key: str | None = None,
        timeout: float | str | None = None,
        buffer_size: int | None = None,
        parameters: Sequence[ExtraParameter] = (),
        binder: PropertyBinder | None = None,
        transport: TransportPort | None = None,
        diagnostic: Diagnostic | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        settings = load_settings(server_url=server_url, api_key=api_key, timeout=timeout, buffer_size=buffer_size)
        super().__init__(settings.buffer_size)
        self.setLevel(level)
        self._settings = settings
        self._owns_transport = transport is None and settings.server_url is not None
        if self._owns_transport:
            transport = SeqHttpTransport(settings.server_url, api_key=settings.api_key, timeout=settings.timeout)
        self._transport = transport
        self._parameters = tuple(parameters)
        self._send_batch: SendBatch | None = None
        if transport is not None:
            self._send_batch = create_send_batch(transport=transport, parameters=self._parameters)
        self._binder = binder or DEFAULT_BINDER
        self._diagnostic = diagnostic
        self._hostname = socket.gethostname()
        self._sending = False
        self._last_record: logging.LogRecord | None = None

    @property
    def settings(self) -> SeqSettings:
        return self._settings

    @property
    def parameters(self) -> tuple[ExtraParameter, ...]:
        return self._parameters

    def record_to_event(self, record: logging.LogRecord) -> LogEvent:
        """Translate ``record`` into a :class:`LogEvent`.

        Property order: caller ``extra`` attributes, bound context properties,
        then ``ThreadName``, ``ProcessId`` and ``HostName``. Earlier sources
        keep their value when a later one repeats a key.
        """

        properties: dict[str, Any] = {
            key: value for key, value in vars(record).items() if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        for key, value in self._binder.current().items():
            properties.setdefault(key, value)
        properties.setdefault("ThreadName", record.threadName)
        properties.setdefault("ProcessId", record.process)
        properties.setdefault("HostName", self._hostname)

        return LogEvent(
            timestamp=datetime.fromtimestamp(record.created),
            level=level_name_for_record(record),
            message=record.getMessage(),
            logger_name=record.name,
            exception=self._exception_text(record),
            properties=properties,
        )

    def _exception_text(self, record: logging.LogRecord) -> str | None:
        if record.exc_info and record.exc_info[0] is not None:
            formatter = self.formatter or _DEFAULT_FORMATTER
            text = formatter.formatException(record.exc_info)
        else:
            text = record.exc_text or None
        if record.stack_info:
            text = f"{text}\n{record.stack_info}" if text else record.stack_info
        return text

    def emit(self, record: logging.LogRecord) -> None:
        """Convert and buffer ``record``; flush when the buffer is full."""

        if record.name == _PACKAGE_LOGGER or record.name.startswith(_PACKAGE_LOGGER + "."):
            return
        try:
            event = self.record_to_event(record)
        except Exception:
            self.handleError(record)
            return
        self.buffer.append(event)
        self._last_record = record
        if self.shouldFlush(record):
            self.flush()

    def shouldFlush(self, record: logging.LogRecord) -> bool:
        return not self._sending and len(self.buffer) >= self.capacity

    def flush(self) -> None:
        """Send every buffered event as one batch and empty the buffer."""

        self.acquire()
        try:
            if self._sending or not self.buffer:
                return
            batch, self.buffer = self.buffer, []
            record = self._last_record
            if self._send_batch is None:
                self._notify("batch_discarded", {"events": len(batch), "reason": "no_server_url"})
                return
            self._sending = True
            try:
                self._send_batch(batch)
            except Exception as exc:
                self._notify("send_failed", {"events": len(batch), "error": repr(exc)})
                if record is not None:
                    self.handleError(record)
            finally:
                self._sending = False
        finally:
            self.release()

    def close(self) -> None:
        """Flush pending events and release the owned transport."""

        try:
            self.flush()
        finally:
            try:
                if self._owns_transport and self._transport is not None:
                    self._transport.close()
            finally:
                logging.Handler.close(self)

    def _notify(self, event_name: str, payload: dict[str, Any]) -> None:
        """Invoke the diagnostic hook while guarding against callback failures."""

        if self._diagnostic is None:
            return
        try:
            self._diagnostic(event_name, payload)
        except Exception as diagnostic_exc:
            LOGGER.error("Seq diagnostic hook raised while reporting %s", event_name, exc_info=diagnostic_exc)


__all__ = ["SeqHandler"]
