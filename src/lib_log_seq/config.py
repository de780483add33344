"""Configuration helpers: environment resolution and optional ``.env`` loading.

Purpose
-------
Resolve the sink settings (server URL, API key, timeout, buffer size) from
explicit arguments first and ``SEQ_*`` environment variables second, and let
operators keep those variables in a ``.env`` file.

Contents
--------
* :class:`SeqSettings` - validated, immutable settings.
* :func:`load_settings` - argument/environment resolution.
* :func:`parse_timeout` - seconds, ``timedelta`` or ``HH:MM:SS`` coercion.
* :func:`enable_dotenv` / :func:`should_use_dotenv` - python-dotenv bridge.

System Role
-----------
Used by :class:`~lib_log_seq.adapters.handler.SeqHandler` when arguments are
omitted and by the CLI for its ``--use-dotenv`` toggle.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

SERVER_URL_ENV_VAR = "SEQ_SERVER_URL"
API_KEY_ENV_VAR = "SEQ_API_KEY"
TIMEOUT_ENV_VAR = "SEQ_TIMEOUT"
BUFFER_SIZE_ENV_VAR = "SEQ_BUFFER_SIZE"
DOTENV_ENV_VAR = "SEQ_USE_DOTENV"

DEFAULT_BUFFER_SIZE = 512
DEFAULT_TIMEOUT = 100.0
_TRUTHY = {"1", "true", "yes", "on"}
_TIMESPAN_RE = re.compile(r"(?:(\d+)\.)?(\d{1,2}):(\d{1,2})(?::(\d{1,2})(?:\.(\d{1,7}))?)?")

_DOTENV_LOADED = False
_DOTENV_PATH: Path | None = None


@dataclass(slots=True, frozen=True)
class SeqSettings:
    """Resolved sink settings.

    ``server_url`` is ``None`` when sending is disabled.
    """

    server_url: str | None
    api_key: str | None
    timeout: float
    buffer_size: int


def load_settings(
    *,
    server_url: str | None = None,
    api_key: str | None = None,
    timeout: float | int | str | timedelta | None = None,
    buffer_size: int | str | None = None,
) -> SeqSettings:
    """Resolve settings from arguments, falling back to ``SEQ_*`` variables.

    Raises
    ------
    ValueError
        When the timeout or buffer size is invalid; the message names the
        environment variable responsible.

    Examples
    --------
    >>> settings = load_settings(server_url="http://seq:5341", timeout="00:00:05", buffer_size=10)
    >>> settings.timeout, settings.buffer_size
    (5.0, 10)
    """

    resolved_url = _blank_to_none(server_url) or _blank_to_none(os.getenv(SERVER_URL_ENV_VAR))
    resolved_key = _blank_to_none(api_key) or _blank_to_none(os.getenv(API_KEY_ENV_VAR))

    raw_timeout = timeout if timeout is not None else _blank_to_none(os.getenv(TIMEOUT_ENV_VAR))
    try:
        resolved_timeout = parse_timeout(raw_timeout) if raw_timeout is not None else DEFAULT_TIMEOUT
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{TIMEOUT_ENV_VAR}: {exc}") from exc

    raw_size = buffer_size if buffer_size is not None else _blank_to_none(os.getenv(BUFFER_SIZE_ENV_VAR))
    resolved_size = _coerce_buffer_size(raw_size) if raw_size is not None else DEFAULT_BUFFER_SIZE

    return SeqSettings(
        server_url=resolved_url,
        api_key=resolved_key,
        timeout=resolved_timeout,
        buffer_size=resolved_size,
    )


def parse_timeout(value: float | int | str | timedelta) -> float:
    """Return ``value`` as a positive number of seconds.

    Strings are either plain seconds or timespans in the form
    ``[D.]HH:MM[:SS[.fffffff]]``.

    Examples
    --------
    >>> parse_timeout("00:00:01")
    1.0
    >>> parse_timeout("1.00:00:00")
    86400.0
    >>> parse_timeout("2.5")
    2.5
    >>> parse_timeout(timedelta(milliseconds=1500))
    1.5
    """

    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, bool):
        raise TypeError("timeout must be a number, timedelta, or string")
    elif isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        seconds = _parse_timeout_text(value)
    else:
        raise TypeError("timeout must be a number, timedelta, or string")
    if seconds <= 0:
        raise ValueError(f"timeout must be positive, got {value!r}")
    return seconds


def _parse_timeout_text(value: str) -> float:
    text = value.strip()
    match = _TIMESPAN_RE.fullmatch(text)
    if match is not None:
        days, hours, minutes, seconds, fraction = match.groups()
        total = timedelta(
            days=int(days or 0),
            hours=int(hours),
            minutes=int(minutes),
            seconds=int(seconds or 0),
        ).total_seconds()
        if fraction:
            total += int(fraction) / 10 ** len(fraction)
        return total
    try:
        return float(text)
    except ValueError as exc:
        raise ValueError(f"Invalid timeout {value!r}; expected seconds or HH:MM:SS") from exc


def _blank_to_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


def _coerce_buffer_size(value: int | str) -> int:
    try:
        size = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{BUFFER_SIZE_ENV_VAR} must be an integer, got {value!r}") from exc
    if size < 1:
        raise ValueError(f"{BUFFER_SIZE_ENV_VAR} must be positive, got {size}")
    return size


def should_use_dotenv(*, explicit: bool | None, env_value: str | None) -> bool:
    """Decide whether to load ``.env``; an explicit CLI flag beats the environment.

    Examples
    --------
    >>> should_use_dotenv(explicit=None, env_value="yes")
    True
    >>> should_use_dotenv(explicit=False, env_value="1")
    False
    """

    if explicit is not None:
        return explicit
    if env_value is None:
        return False
    return env_value.strip().lower() in _TRUTHY


def enable_dotenv(*, search_from: Path | None = None) -> Path | None:
    """Load the nearest ``.env`` without overriding existing variables.

    The search walks from ``search_from`` (default: the working directory) up
    to the filesystem root. Only the first call per process does any work;
    later calls return the cached result.
    """

    global _DOTENV_LOADED, _DOTENV_PATH
    if _DOTENV_LOADED:
        return _DOTENV_PATH

    if search_from is None:
        found = find_dotenv(usecwd=True)
        path = Path(found).resolve() if found else None
    else:
        path = _find_upwards(search_from.resolve())

    if path is not None:
        load_dotenv(path, override=False)
        logger.debug("Loaded environment from %s", path)
    _DOTENV_LOADED = True
    _DOTENV_PATH = path
    return path


def _find_upwards(start: Path) -> Path | None:
    for directory in (start, *start.parents):
        candidate = directory / ".env"
        if candidate.is_file():
            return candidate
    return None


def _reset_dotenv_state_for_testing() -> None:
    global _DOTENV_LOADED, _DOTENV_PATH
    _DOTENV_LOADED = False
    _DOTENV_PATH = None


__all__ = [
    "API_KEY_ENV_VAR",
    "BUFFER_SIZE_ENV_VAR",
    "DEFAULT_BUFFER_SIZE",
    "DEFAULT_TIMEOUT",
    "DOTENV_ENV_VAR",
    "SERVER_URL_ENV_VAR",
    "SeqSettings",
    "TIMEOUT_ENV_VAR",
    "enable_dotenv",
    "load_settings",
    "parse_timeout",
    "should_use_dotenv",
]
