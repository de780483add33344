"""Severity names understood by the Seq wire format.

Purpose
-------
Translate the level names carried on log events into the Seq level names the
raw-events endpoint expects, and bridge stdlib :mod:`logging` levels onto the
five canonical names.

Contents
--------
* :class:`LogLevel` enum with conversion helpers.
* :data:`_SEQ_LEVELS` constant mapping level names to Seq level names.
* :func:`seq_level` lookup with the ``Information`` fallback.

System Role
-----------
Consumed by the encoder when writing the ``Level`` field and by the logging
handler when translating :class:`logging.LogRecord` severities.
"""

from __future__ import annotations

import logging
from enum import Enum
from types import MappingProxyType
from typing import Mapping


DEFAULT_SEQ_LEVEL = "Information"


class LogLevel(Enum):
    """Canonical level names with their stdlib numeric counterparts."""

    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40
    FATAL = 50

    @property
    def seq_name(self) -> str:
        """Return the Seq level name used on the wire."""

        return _SEQ_LEVELS[self.name]

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """Resolve ``name`` case-insensitively, accepting stdlib spellings.

        Examples
        --------
        >>> LogLevel.from_name("warning")
        <LogLevel.WARN: 30>
        """
        normalized = name.strip().upper()
        normalized = _PYTHON_ALIASES.get(normalized, normalized)
        try:
            return cls[normalized]
        except KeyError as exc:
            raise ValueError(f"Unknown log level: {name!r}") from exc


# Keyed by exact (case-sensitive) level name.
_SEQ_LEVELS: Mapping[str, str] = MappingProxyType(
    {
        "DEBUG": "Debug",
        "INFO": "Information",
        "WARN": "Warning",
        "ERROR": "Error",
        "FATAL": "Fatal",
    }
)

_PYTHON_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "WARNING": "WARN",
        "CRITICAL": "FATAL",
    }
)


def seq_level(name: str | None) -> str:
    """Return the Seq level for ``name`` or ``Information`` when unknown.

    Examples
    --------
    >>> seq_level("WARN")
    'Warning'
    >>> seq_level("TRACE")
    'Information'
    >>> seq_level(None)
    'Information'
    """

    if name is None:
        return DEFAULT_SEQ_LEVEL
    return _SEQ_LEVELS.get(name, DEFAULT_SEQ_LEVEL)


def level_name_for_record(record: logging.LogRecord) -> str:
    """Return the level name to place on an event built from ``record``.

    Standard stdlib names are folded onto the canonical set (``WARNING`` to
    ``WARN``, ``CRITICAL`` to ``FATAL``); custom level names pass through so
    the encoder can apply its fallback.
    """

    name = record.levelname
    return _PYTHON_ALIASES.get(name, name)


__all__ = ["DEFAULT_SEQ_LEVEL", "LogLevel", "level_name_for_record", "seq_level"]
