"""Use case wrapping encoded events in the raw-events envelope and sending them.

Purpose
-------
Join the encoder and a :class:`~lib_log_seq.application.ports.TransportPort`:
a batch of events becomes one ``{"events":[...]}`` UTF-8 payload and one call
to ``transport.send``.

Contents
--------
* :func:`encode_batch` - envelope plus encoded events as text.
* :func:`create_send_batch` - factory returning the runtime callable.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import timedelta
from io import StringIO

from lib_log_seq.application.ports.transport import TransportPort
from lib_log_seq.domain.encoder import write_events
from lib_log_seq.domain.events import ExtraParameter, LogEvent

logger = logging.getLogger(__name__)

SendBatch = Callable[[Sequence[LogEvent]], int]

_ENVELOPE_OPEN = '{"events":['
_ENVELOPE_CLOSE = "]}"


def encode_batch(
    events: Iterable[LogEvent],
    parameters: Sequence[ExtraParameter] = (),
    *,
    offset: timedelta | None = None,
) -> str:
    """Return the complete raw-events document for ``events``.

    Examples
    --------
    >>> encode_batch([])
    '{"events":[]}'
    """

    payload = StringIO()
    payload.write(_ENVELOPE_OPEN)
    write_events(events, parameters, payload, offset=offset)
    payload.write(_ENVELOPE_CLOSE)
    return payload.getvalue()


def create_send_batch(
    *,
    transport: TransportPort,
    parameters: Sequence[ExtraParameter] = (),
    encoding: str = "utf-8",
) -> SendBatch:
    """Build the callable that encodes and ships one batch.

    Parameters
    ----------
    transport:
        Destination for the encoded bytes.
    parameters:
        Extra parameters applied to every event, in order. The sequence is
        copied so later changes by the caller have no effect.
    encoding:
        Text encoding of the payload.

    Returns
    -------
    Callable[[Sequence[LogEvent]], int]
        Function accepting the batch and returning the number of events sent.
        Empty batches are not sent. Transport errors propagate.

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
    >>> send_batch = create_send_batch(transport=transport)
    >>> send_batch([])
    0
    >>> transport.payloads
    []
    """

    frozen_parameters = tuple(parameters)

    def send_batch(events: Sequence[LogEvent]) -> int:
        batch = list(events)
        if not batch:
            return 0
        body = encode_batch(batch, frozen_parameters).encode(encoding)
        transport.send(body)
        logger.debug("Sent %d events (%d bytes)", len(batch), len(body))
        return len(batch)

    return send_batch


__all__ = ["SendBatch", "create_send_batch", "encode_batch"]
