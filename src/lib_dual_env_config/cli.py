"""CLI adapter for ``lib_dual_env_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect and maintain the dual-environment database configuration
from a shell: see which environment a set of server signals classifies as,
which credentials would be used, store a new credential set, and compute the
deployment's base URL.

Contents
--------
* :func:`cli` – root command wiring traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata.
* :func:`cli_detect` – classifies a signal bundle.
* :func:`cli_resolve` – prints the resolution result as JSON.
* :func:`cli_save` – stores one environment's credential set.
* :func:`cli_base_url` – prints the base URL.
* :func:`cli_warnings` – lists deployment advisories.
* :func:`cli_environment` – prints the environment diagnostic summary.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
Outermost layer: it builds a :class:`ServerSignals` bundle from repeatable
``--signal NAME=VALUE`` options (CGI names such as ``SERVER_NAME``), optionally
seeded from the process environment, and calls the composition root.

Examples
--------
>>> from click.testing import CliRunner
>>> result = CliRunner().invoke(cli, ["detect", "--signal", "SERVER_NAME=myapp.local"])
>>> json.loads(result.output)["environment"]
'local'
"""

from __future__ import annotations

import json
import os
import sys
from dataclasses import asdict
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.dotenv.codec import DotEnvCodec
from .adapters.signals.default import ENVIRON_KEYS, ServerSignals
from .core import (
    detect_environment,
    environment_info,
    environment_warnings,
    resolve_base_url,
    resolve_credentials,
    save_environment_credentials,
)
from .domain.errors import ValidationError
from .domain.resolution import LIVE, LOCAL, environment_label

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_PROG_NAME: Final[str] = "lib_dual_env_config"

_SIGNAL_NAMES: Final[frozenset[str]] = frozenset(ENVIRON_KEYS.values())


def _resolve_version() -> str:
    """Return the installed package version, or ``"0.0.0"`` for source checkouts."""

    try:
        return metadata.version(_PROG_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _parse_signals(
    _ctx: click.Context, _param: click.Parameter, values: Sequence[str]
) -> dict[str, str]:
    """Turn repeated ``NAME=VALUE`` options into a CGI-style mapping."""

    parsed: dict[str, str] = {}
    for item in values:
        name, separator, value = item.partition("=")
        name = name.strip().upper()
        if not separator or name not in _SIGNAL_NAMES:
            raise click.BadParameter(
                f"Expected NAME=VALUE with NAME one of: {', '.join(sorted(_SIGNAL_NAMES))}.",
                param_hint="--signal",
            )
        parsed[name] = value
    return parsed


def _signal_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the shared ``--signal`` / ``--inherit-env`` options to *func*."""

    func = click.option(
        "--inherit-env/--no-inherit-env",
        default=False,
        help="Seed signals from CGI variables in the process environment",
    )(func)
    func = click.option(
        "--signal",
        "signals",
        multiple=True,
        callback=_parse_signals,
        metavar="NAME=VALUE",
        help="Server signal in CGI naming, e.g. SERVER_NAME=myapp.local (repeatable)",
    )(func)
    return func


def _build_signals(signals: dict[str, str], inherit_env: bool) -> ServerSignals:
    environ: dict[str, str] = {}
    if inherit_env:
        environ.update({key: value for key, value in os.environ.items() if key in _SIGNAL_NAMES})
    environ.update(signals)
    return ServerSignals.from_environ(environ)


_ENV_FILE_OPTION = click.option(
    "--env-file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=Path(".env"),
    show_default=True,
    help="Configuration file holding the DB_LOCAL_*, DB_LIVE_* and DB_* keys",
)


@click.group(
    help="Dual-environment database configuration tools",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_PROG_NAME,
    message="lib_dual_env_config version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command storing the traceback preference for ``lib_cli_exit_tools``."""

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_PROG_NAME)
    except metadata.PackageNotFoundError:
        click.echo(f"{_PROG_NAME} (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _PROG_NAME)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("detect", context_settings=CLICK_CONTEXT_SETTINGS)
@_signal_options
def cli_detect(signals: dict[str, str], inherit_env: bool) -> None:
    """Classify the server signals as localhost or production."""

    detected = detect_environment(_build_signals(signals, inherit_env))
    click.echo(json.dumps({"detected_environment": detected, "environment": environment_label(detected)}))


@cli.command("resolve", context_settings=CLICK_CONTEXT_SETTINGS)
@_ENV_FILE_OPTION
@_signal_options
@click.option("--show-secrets/--hide-secrets", default=False, help="Print the password in clear text")
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
@click.pass_context
def cli_resolve(
    ctx: click.Context,
    env_file: Path,
    signals: dict[str, str],
    inherit_env: bool,
    show_secrets: bool,
    indent: Optional[int],
) -> None:
    """Print which stored credential set would be used, as JSON.

    Exits with status 1 when neither the local nor the live set is usable.
    """

    result = resolve_credentials(env_file, _build_signals(signals, inherit_env))
    click.echo(json.dumps(result.as_dict(redact=not show_secrets), indent=indent))
    if result.credentials is None:
        ctx.exit(1)


@cli.command("save", context_settings=CLICK_CONTEXT_SETTINGS)
@_ENV_FILE_OPTION
@_signal_options
@click.option(
    "--environment",
    "label",
    type=click.Choice([LOCAL, LIVE], case_sensitive=False),
    required=True,
    help="Credential set to replace",
)
@click.option("--host", default="", help="Database host")
@click.option("--port", default=None, help="Database port (3306 when omitted)")
@click.option("--database", default="", help="Database name")
@click.option("--username", default="", help="Database user")
@click.option("--password", default="", help="Database password")
@click.option("--unix-socket", default="", help="Unix socket path used instead of host/port")
@click.pass_context
def cli_save(
    ctx: click.Context,
    env_file: Path,
    signals: dict[str, str],
    inherit_env: bool,
    label: str,
    host: str,
    port: Optional[str],
    database: str,
    username: str,
    password: str,
    unix_socket: str,
) -> None:
    """Store one environment's credentials and refresh the active DB_* keys."""

    credentials: dict[str, str] = {
        "host": host,
        "database": database,
        "username": username,
        "password": password,
        "unix_socket": unix_socket,
    }
    if port is not None:
        credentials["port"] = port

    try:
        saved = save_environment_credentials(env_file, label.lower(), credentials, _build_signals(signals, inherit_env))
    except ValidationError as exc:
        raise click.UsageError(str(exc), ctx=ctx) from exc
    if not saved:
        click.echo(f"Failed to write {env_file}", err=True)
        ctx.exit(1)
    click.echo(json.dumps({"saved": label.lower(), "path": str(env_file)}))


@cli.command("base-url", context_settings=CLICK_CONTEXT_SETTINGS)
@_signal_options
@click.option("--app-url", default=None, help="Configured base URL; its scheme follows the request")
@click.option(
    "--env-file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Read APP_URL from this configuration file when --app-url is not given",
)
def cli_base_url(
    signals: dict[str, str],
    inherit_env: bool,
    app_url: Optional[str],
    env_file: Optional[Path],
) -> None:
    """Print the externally visible base URL (never with a trailing slash)."""

    if app_url is None and env_file is not None:
        app_url = DotEnvCodec(env_file).read_all().get("APP_URL")
    click.echo(resolve_base_url(_build_signals(signals, inherit_env), app_url))


@cli.command("warnings", context_settings=CLICK_CONTEXT_SETTINGS)
@_ENV_FILE_OPTION
@_signal_options
def cli_warnings(env_file: Path, signals: dict[str, str], inherit_env: bool) -> None:
    """List deployment advisories for the detected environment as JSON."""

    advisories = environment_warnings(env_file, _build_signals(signals, inherit_env))
    click.echo(json.dumps([asdict(item) for item in advisories], indent=2))


@cli.command("environment", context_settings=CLICK_CONTEXT_SETTINGS)
@_ENV_FILE_OPTION
@_signal_options
def cli_environment(env_file: Path, signals: dict[str, str], inherit_env: bool) -> None:
    """Print the verdict, HTTPS state, server identity and advisories as JSON."""

    info = environment_info(env_file, _build_signals(signals, inherit_env))
    click.echo(json.dumps(asdict(info), indent=2))


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_PROG_NAME,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
