"""CLI behaviour coverage for the info, encode, and send commands."""

from __future__ import annotations

import json
import re
import sys
from typing import Any, Callable

import lib_cli_exit_tools
import pytest
from click.testing import CliRunner

from lib_log_seq import __init__conf__
from lib_log_seq import cli as cli_mod
from lib_log_seq import config as seq_config
from lib_log_seq.cli import summary_info

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(text: str) -> str:
    """Return ``text`` without ANSI colour codes.

    Examples
    --------
    >>> strip_ansi("\x1b[31mred\x1b[0m")
    'red'
    """

    return ANSI_RE.sub("", text)


def run_cli(args: list[str] | None = None, **kwargs: Any) -> tuple[int, str, BaseException | None]:
    """Invoke the click group with ``CliRunner`` and capture output."""

    runner = CliRunner()
    result = runner.invoke(cli_mod.cli, args or [], prog_name=__init__conf__.shell_command, **kwargs)
    return result.exit_code, result.output, result.exception


class _FakeResponse:
    def __init__(self, status_code: int, text: str) -> None:
        self.status_code = status_code
        self.text = text

    def close(self) -> None:
        pass


class _FakeSession:
    instances: list["_FakeSession"] = []

    def __init__(self, status_code: int = 201, text: str = "") -> None:
        self.status_code = status_code
        self.text = text
        self.posts: list[dict[str, Any]] = []
        self.closed = False
        _FakeSession.instances.append(self)

    def post(self, url: str, **kwargs: Any) -> _FakeResponse:
        self.posts.append({"url": url, **kwargs})
        return _FakeResponse(self.status_code, self.text)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_session(monkeypatch: pytest.MonkeyPatch) -> Callable[..., None]:
    _FakeSession.instances = []

    def install(status_code: int = 201, text: str = "") -> None:
        monkeypatch.setattr(
            "lib_log_seq.adapters.http_transport.requests.Session",
            lambda: _FakeSession(status_code, text),
        )

    return install


def test_cli_without_subcommand_prints_summary() -> None:
    exit_code, stdout, _ = run_cli()

    assert exit_code == 0
    assert stdout == summary_info()


def test_cli_info_command_matches_summary() -> None:
    exit_code, stdout, _ = run_cli(["info"])

    assert exit_code == 0
    assert stdout == summary_info()
    assert __init__conf__.version in stdout


def test_cli_version_option() -> None:
    exit_code, stdout, _ = run_cli(["--version"])

    assert exit_code == 0
    assert stdout.strip() == __init__conf__.version


def test_cli_no_traceback_option(monkeypatch: pytest.MonkeyPatch) -> None:
    """`--no-traceback` disables verbose tracebacks for the invoked command."""

    monkeypatch.setattr(lib_cli_exit_tools.config, "traceback", True, raising=False)

    exit_code, _stdout, _exception = run_cli(["--no-traceback", "info"])

    assert exit_code == 0
    assert lib_cli_exit_tools.config.traceback is False


def test_encode_prints_raw_events_payload() -> None:
    exit_code, stdout, _ = run_cli(
        ["encode", "Order {id} placed", "--level", "warning", "--logger", "shop", "-p", "Amount=19.99", "-p", "Tenant=acme"]
    )

    assert exit_code == 0
    document = json.loads(stdout)
    (event,) = document["events"]
    assert event["Level"] == "Warning"
    assert event["EventType"] == 67689
    assert event["MessageTemplate"] == "Order {{id}} placed"
    assert event["Properties"] == {"Logger": "shop", "Amount": 19.99, "Tenant": "acme"}


def test_encode_applies_template_parameters() -> None:
    exit_code, stdout, _ = run_cli(["encode", "hi", "-p", "Tenant=acme", "--parameter", "Origin={logger_name}/{Tenant}"])

    assert exit_code == 0
    properties = json.loads(stdout)["events"][0]["Properties"]
    assert list(properties) == ["Origin", "Logger", "Tenant"]
    assert properties["Origin"] == f"{__init__conf__.shell_command}/acme"


def test_encode_unknown_level_falls_back_to_information() -> None:
    exit_code, stdout, _ = run_cli(["encode", "hi", "--level", "trace"])

    assert exit_code == 0
    assert json.loads(stdout)["events"][0]["Level"] == "Information"


def test_encode_pretty_output_is_valid_json() -> None:
    exit_code, stdout, _ = run_cli(["encode", "hi", "--pretty"])

    assert exit_code == 0
    assert json.loads(strip_ansi(stdout))["events"][0]["MessageTemplate"] == "hi"


def test_encode_rejects_malformed_property() -> None:
    exit_code, stdout, _ = run_cli(["encode", "hi", "-p", "novalue"])

    assert exit_code == 2
    assert "KEY=VALUE" in stdout


def test_send_requires_server_url() -> None:
    exit_code, stdout, _ = run_cli(["send", "hi"])

    assert exit_code == 2
    assert seq_config.SERVER_URL_ENV_VAR in stdout


def test_send_posts_event(fake_session: Callable[..., None]) -> None:
    fake_session()

    exit_code, stdout, _ = run_cli(["send", "hello", "--server-url", "http://seq:5341", "--api-key", "k", "--timeout", "5"])

    assert exit_code == 0
    assert stdout.strip() == "Sent 1 event(s) to http://seq:5341/api/events/raw"
    (session,) = _FakeSession.instances
    (post,) = session.posts
    assert post["headers"]["X-Seq-ApiKey"] == "k"
    assert post["timeout"] == 5.0
    assert json.loads(post["data"])["events"][0]["MessageTemplate"] == "hello"
    assert session.closed is True


def test_send_uses_environment_settings(fake_session: Callable[..., None], monkeypatch: pytest.MonkeyPatch) -> None:
    fake_session()
    monkeypatch.setenv(seq_config.SERVER_URL_ENV_VAR, "http://seq.env:5341/")

    exit_code, stdout, _ = run_cli(["send", "hello"])

    assert exit_code == 0
    assert "http://seq.env:5341/api/events/raw" in stdout


def test_send_reports_rejected_batches(fake_session: Callable[..., None]) -> None:
    fake_session(status_code=401, text="Unauthorized")

    exit_code, stdout, _ = run_cli(["send", "hello", "--server-url", "http://seq:5341"])

    assert exit_code == 1
    assert "Received failed result 401: Unauthorized" in stdout


def test_send_rejects_invalid_timeout() -> None:
    exit_code, stdout, _ = run_cli(["send", "hello", "--server-url", "http://seq:5341", "--timeout", "never"])

    assert exit_code == 2
    assert seq_config.TIMEOUT_ENV_VAR in stdout


def test_cli_dotenv_toggle_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    """CLI flag wins over environment toggle when deciding whether to load .env."""

    calls: list[tuple[tuple[object, ...], dict[str, object]]] = []

    def record_enable(*args: object, **kwargs: object) -> None:
        calls.append((args, kwargs))

    monkeypatch.setattr(seq_config, "enable_dotenv", record_enable)

    exit_code, _, _ = run_cli(["--use-dotenv", "info"])
    assert exit_code == 0
    assert len(calls) == 1

    calls.clear()
    exit_code, _, _ = run_cli(["info"], env={seq_config.DOTENV_ENV_VAR: "1"})
    assert exit_code == 0
    assert len(calls) == 1

    calls.clear()
    exit_code, _, _ = run_cli(["--no-use-dotenv", "info"], env={seq_config.DOTENV_ENV_VAR: "1"})
    assert exit_code == 0
    assert calls == []

    exit_code, _, _ = run_cli(["info"])
    assert exit_code == 0
    assert calls == []


def test_main_restores_traceback_preferences(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(lib_cli_exit_tools.config, "traceback", True, raising=False)

    recorded: dict[str, bool] = {}

    def fake_run_cli(command: Callable[..., int], argv: list[str] | None = None, *, prog_name: str | None = None, **_: object) -> int:
        runner = CliRunner()
        result = runner.invoke(command, ["--no-traceback", "info"] if argv is None else argv)
        if result.exception is not None:
            raise result.exception
        recorded["traceback"] = lib_cli_exit_tools.config.traceback
        return result.exit_code

    monkeypatch.setattr(lib_cli_exit_tools, "run_cli", fake_run_cli)

    exit_code = cli_mod.main(["--no-traceback", "info"])

    assert exit_code == 0
    assert recorded == {"traceback": False}
    assert lib_cli_exit_tools.config.traceback is True


def test_main_consumes_sys_argv(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(lib_cli_exit_tools.config, "traceback", False, raising=False)
    monkeypatch.setattr(sys, "argv", [__init__conf__.shell_command, "info"], raising=False)

    exit_code = cli_mod.main()
    captured = capsys.readouterr()

    assert exit_code == 0
    assert f"Info for {__init__conf__.name}:" in captured.out


def test_encode_rejects_malformed_parameter_template() -> None:
    exit_code, stdout, _ = run_cli(["encode", "hi", "--parameter", "Broken={logger_name"])

    assert exit_code == 2
    assert "invalid template" in stdout


def test_encode_renders_mismatched_format_spec_as_text() -> None:
    exit_code, stdout, _ = run_cli(["encode", "hi", "--logger", "svc", "--parameter", "Width={logger_name:d}"])

    assert exit_code == 0
    assert json.loads(stdout)["events"][0]["Properties"]["Width"] == "svc"
