"""Adapters connecting the encoder to stdlib logging and HTTP."""

from __future__ import annotations

from ._formatting import build_format_payload, template_parameter
from .handler import SeqHandler
from .http_transport import SeqDeliveryError, SeqHttpTransport

__all__ = [
    "SeqDeliveryError",
    "SeqHandler",
    "SeqHttpTransport",
    "build_format_payload",
    "template_parameter",
]
