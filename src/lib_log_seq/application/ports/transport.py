"""Port describing the destination of encoded event payloads."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TransportPort(Protocol):
    """Deliver one encoded batch to the log server."""

    def send(self, payload: bytes) -> None:
        """Transmit ``payload``; raise when the server rejects it."""

    def close(self) -> None:
        """Release connections held by the transport."""


__all__ = ["TransportPort"]
