"""HTTP transport posting raw-event batches to a Seq server.

Purpose
-------
Deliver encoded payloads to ``<server>/api/events/raw`` with ``requests``,
authenticating with an API key header when one is configured.

Contents
--------
* :class:`SeqHttpTransport` - concrete :class:`TransportPort`.
* :class:`SeqDeliveryError` - raised for non-success responses.

System Role
-----------
Outermost I/O boundary. The encoder never sees transport failures; the
logging handler decides how to report them.
"""

from __future__ import annotations

from datetime import timedelta
from types import TracebackType
from urllib.parse import urljoin

import requests

from lib_log_seq.application.ports.transport import TransportPort
from lib_log_seq.config import DEFAULT_TIMEOUT, parse_timeout

BULK_UPLOAD_RESOURCE = "api/events/raw"
API_KEY_HEADER = "X-Seq-ApiKey"
CONTENT_TYPE = "application/json; charset=utf-8"


class SeqDeliveryError(RuntimeError):
    """Raised when the server answers with a non-success status code."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Received failed result {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class SeqHttpTransport(TransportPort):
    """POST payloads to the Seq raw-events endpoint.

    Parameters
    ----------
    server_url:
        Base address of the server, e.g. ``http://seq:5341``. A trailing ``/``
        is added when missing so that servers hosted under a path work.
    api_key:
        Sent as ``X-Seq-ApiKey`` unless blank.
    timeout:
        Request timeout; see :func:`parse_timeout`.
    session:
        Optional :class:`requests.Session`. Sessions passed in are not closed
        by :meth:`close`.

    Examples
    --------
    >>> transport = SeqHttpTransport("http://seq.local:5341")
    >>> transport.endpoint
    'http://seq.local:5341/api/events/raw'
    >>> transport.close()
    """

    def __init__(
        self,
        server_url: str,
        *,
        api_key: str | None = None,
        timeout: float | int | str | timedelta = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        base = (server_url or "").strip()
        if not base:
            raise ValueError("server_url must not be empty")
        if not base.endswith("/"):
            base += "/"
        self._server_url = base
        self._endpoint = urljoin(base, BULK_UPLOAD_RESOURCE)
        self._api_key = api_key if api_key and api_key.strip() else None
        self._timeout = parse_timeout(timeout)
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()

    @property
    def server_url(self) -> str:
        return self._server_url

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def timeout(self) -> float:
        return self._timeout

    def send(self, payload: bytes) -> None:
        """POST ``payload``; raise :class:`SeqDeliveryError` on non-2xx answers."""

        headers = {"Content-Type": CONTENT_TYPE}
        if self._api_key is not None:
            headers[API_KEY_HEADER] = self._api_key
        response = self._session.post(self._endpoint, data=payload, headers=headers, timeout=self._timeout)
        try:
            if not 200 <= response.status_code < 300:
                raise SeqDeliveryError(response.status_code, response.text)
        finally:
            response.close()

    def close(self) -> None:
        """Close the session when this transport created it."""

        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "SeqHttpTransport":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = [
    "API_KEY_HEADER",
    "BULK_UPLOAD_RESOURCE",
    "SeqDeliveryError",
    "SeqHttpTransport",
]
