"""Use cases composed by the adapters."""

from __future__ import annotations

from .send_batch import SendBatch, create_send_batch, encode_batch

__all__ = ["SendBatch", "create_send_batch", "encode_batch"]
