from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

import pytest

from lib_log_seq import config as seq_config
from lib_log_seq.domain.events import LogEvent

_SEQ_ENV_VARS = (
    seq_config.SERVER_URL_ENV_VAR,
    seq_config.API_KEY_ENV_VAR,
    seq_config.TIMEOUT_ENV_VAR,
    seq_config.BUFFER_SIZE_ENV_VAR,
    seq_config.DOTENV_ENV_VAR,
)


@pytest.fixture(autouse=True)
def _isolated_seq_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ambient ``SEQ_*`` variables and dotenv state out of every test."""

    for name in _SEQ_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    seq_config._reset_dotenv_state_for_testing()
    yield
    seq_config._reset_dotenv_state_for_testing()


@pytest.fixture
def event_factory() -> Callable[..., LogEvent]:
    def _make(
        message: str = "hello",
        *,
        level: str | None = "INFO",
        logger_name: str = "tests",
        timestamp: datetime | None = None,
        exception: Any = None,
        **properties: Any,
    ) -> LogEvent:
        return LogEvent(
            timestamp=timestamp or datetime(2024, 1, 15, 10, 0, 0),
            level=level,
            message=message,
            logger_name=logger_name,
            exception=exception,
            properties=properties,
        )

    return _make
