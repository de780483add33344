"""Click command line for inspecting and exercising the Seq sink.

Purpose
-------
Give operators a quick way to see the exact payload an event produces and to
check connectivity and API keys against a server, without writing a host
application.

Contents
--------
* :func:`cli` - root group (``--traceback``, ``--use-dotenv``).
* ``info`` / ``encode`` / ``send`` subcommands.
* :func:`main` - entry point used by the console script and ``python -m``.

System Role
-----------
Presentation layer. It builds :class:`~lib_log_seq.domain.events.LogEvent`
objects directly and reuses the send-batch use case and HTTP transport that the
logging handler uses.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Callable

import click
import lib_cli_exit_tools
import requests
from rich.console import Console

from . import __init__conf__
from . import config
from .adapters._formatting import template_parameter
from .adapters.http_transport import SeqDeliveryError, SeqHttpTransport
from .application.use_cases.send_batch import create_send_batch, encode_batch
from .domain.events import ExtraParameter, LogEvent
from .domain.levels import LogLevel

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def summary_info() -> str:
    """Return the metadata banner printed by ``info``.

    Examples
    --------
    >>> "version" in summary_info()
    True
    """

    lines: list[str] = []
    __init__conf__.print_info(writer=lines.append)
    return "".join(lines)


def _normalise_level(name: str) -> str:
    try:
        return LogLevel.from_name(name).name
    except ValueError:
        # Unknown names are kept so the encoder applies its own fallback.
        return name.strip().upper()


def _split_pairs(values: Sequence[str], option: str) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for raw in values:
        key, separator, value = raw.partition("=")
        if not separator or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {raw!r}", param_hint=option)
        pairs.append((key, value))
    return pairs


def _build_event(message: str, level: str, logger_name: str, properties: Sequence[str]) -> LogEvent:
    return LogEvent(
        timestamp=datetime.now(),
        level=_normalise_level(level),
        message=message,
        logger_name=logger_name,
        properties=dict(_split_pairs(properties, "--property")),
    )


def _build_parameters(parameters: Sequence[str]) -> list[ExtraParameter]:
    built: list[ExtraParameter] = []
    for name, template in _split_pairs(parameters, "--parameter"):
        try:
            built.append(template_parameter(name, template))
        except ValueError as exc:
            raise click.BadParameter(f"invalid template {template!r}: {exc}", param_hint="--parameter") from exc
    return built


def _event_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options shared by ``encode`` and ``send``."""

    decorators = [
        click.argument("message"),
        click.option("--level", default="INFO", show_default=True, help="Level name (DEBUG, INFO, WARN, ERROR, FATAL)."),
        click.option("--logger", "logger_name", default=__init__conf__.shell_command, show_default=True, help="Logger name."),
        click.option("--property", "-p", "properties", multiple=True, metavar="KEY=VALUE", help="Event property (repeatable)."),
        click.option(
            "--parameter",
            "parameters",
            multiple=True,
            metavar="NAME=TEMPLATE",
            help="Extra parameter rendered from a str.format template, e.g. Host={hostname} (repeatable).",
        ),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


@click.group(invoke_without_command=True, context_settings=CLICK_CONTEXT_SETTINGS)
@click.version_option(version=__init__conf__.version, prog_name=__init__conf__.shell_command, message="%(version)s")
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python tracebacks on errors.",
)
@click.option(
    "--use-dotenv/--no-use-dotenv",
    default=False,
    help=f"Load environment variables from the nearest .env (also enabled by {config.DOTENV_ENV_VAR}=1).",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool, use_dotenv: bool) -> None:
    """Encode log events for Seq and send them to a server."""

    lib_cli_exit_tools.config.traceback = traceback

    explicit: bool | None = None
    if ctx.get_parameter_source("use_dotenv") is not click.core.ParameterSource.DEFAULT:
        explicit = use_dotenv
    if config.should_use_dotenv(explicit=explicit, env_value=os.getenv(config.DOTENV_ENV_VAR)):
        config.enable_dotenv()

    if ctx.invoked_subcommand is None:
        click.echo(summary_info(), nl=False)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def info_command() -> None:
    """Print package metadata."""

    click.echo(summary_info(), nl=False)


@cli.command("encode", context_settings=CLICK_CONTEXT_SETTINGS)
@_event_options
@click.option("--pretty", is_flag=True, help="Pretty-print the payload with syntax highlighting.")
def encode_command(
    message: str,
    level: str,
    logger_name: str,
    properties: tuple[str, ...],
    parameters: tuple[str, ...],
    pretty: bool,
) -> None:
    """Print the raw-events payload for a single event."""

    event = _build_event(message, level, logger_name, properties)
    payload = encode_batch([event], _build_parameters(parameters))
    if pretty:
        Console().print_json(payload)
    else:
        click.echo(payload)


@cli.command("send", context_settings=CLICK_CONTEXT_SETTINGS)
@_event_options
@click.option("--server-url", default=None, help=f"Seq server address (default: ${config.SERVER_URL_ENV_VAR}).")
@click.option("--api-key", default=None, help=f"Seq API key (default: ${config.API_KEY_ENV_VAR}).")
@click.option("--timeout", default=None, help="Request timeout in seconds or HH:MM:SS.")
def send_command(
    message: str,
    level: str,
    logger_name: str,
    properties: tuple[str, ...],
    parameters: tuple[str, ...],
    server_url: str | None,
    api_key: str | None,
    timeout: str | None,
) -> None:
    """Send a single event to a Seq server."""

    try:
        settings = config.load_settings(server_url=server_url, api_key=api_key, timeout=timeout)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc
    if settings.server_url is None:
        raise click.UsageError(f"No server URL: pass --server-url or set {config.SERVER_URL_ENV_VAR}.")

    event = _build_event(message, level, logger_name, properties)
    with SeqHttpTransport(settings.server_url, api_key=settings.api_key, timeout=settings.timeout) as transport:
        send_batch = create_send_batch(transport=transport, parameters=_build_parameters(parameters))
        try:
            count = send_batch([event])
        except (SeqDeliveryError, requests.RequestException) as exc:
            raise click.ClickException(str(exc)) from exc
    click.echo(f"Sent {count} event(s) to {transport.endpoint}")


def main(argv: Sequence[str] | None = None) -> int:
    """Run :func:`cli` with exit-code and traceback handling from ``lib_cli_exit_tools``.

    The traceback setting is restored afterwards so repeated in-process calls
    (tests, notebooks) do not inherit ``--traceback`` from a previous run.
    """

    previous_traceback = lib_cli_exit_tools.config.traceback
    try:
        return lib_cli_exit_tools.run_cli(
            cli,
            argv=list(argv) if argv is not None else None,
            prog_name=__init__conf__.shell_command,
        )
    finally:
        lib_cli_exit_tools.config.traceback = previous_traceback


__all__ = ["cli", "main", "summary_info"]
