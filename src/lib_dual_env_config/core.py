"""Composition root for ``lib_dual_env_config``.

Purpose
-------
Wire the default adapters (dotenv codec, environment classifier, base-URL
resolver) into the credential resolution use case and expose a small set of
stable functions that take the configuration file path and the signal bundle
explicitly.

Contents
--------
* :func:`detect_environment` – classify a signal bundle.
* :func:`resolve_credentials` – pick the credentials to connect with.
* :func:`write_dual_config` – store local/live sets and refresh ``DB_*``.
* :func:`save_environment_credentials` – replace one environment's set.
* :func:`resolve_base_url` – compute the deployment's base URL.
* :func:`environment_info` – diagnostic summary of the execution context.
* :func:`build_resolver` – assemble a :class:`CredentialResolver`.

System Role
-----------
Every public function binds a fresh correlation id so the log events of one
call can be grouped. Nothing here reads ``os.environ`` or a live request.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from .adapters.dotenv.codec import DotEnvCodec
from .adapters.environment.classifier import EnvironmentClassifier, EnvironmentInfo, EnvironmentWarning
from .adapters.signals.default import ServerSignals
from .adapters.urls.base_url import BaseUrlResolver
from .application.resolution import CredentialResolver, apply_active_credentials
from .domain.credentials import CredentialSet, is_valid
from .domain.errors import ConfigError, ConfigWriteError, InvalidFormat, UnknownEnvironment, ValidationError
from .domain.resolution import ResolutionResult, get_prefix_for_environment
from .observability import new_correlation_id

PathLike = str | os.PathLike[str]


def build_resolver(env_path: PathLike, signals: ServerSignals) -> CredentialResolver:
    """Return a resolver backed by the dotenv file at *env_path*."""

    return CredentialResolver(DotEnvCodec(env_path), EnvironmentClassifier(), signals)


def detect_environment(signals: ServerSignals) -> str:
    """Return ``"localhost"`` or ``"production"`` for *signals*.

    Examples
    --------
    >>> detect_environment(ServerSignals(server_software="Apache/2.4 (XAMPP)"))
    'localhost'
    """

    new_correlation_id()
    return EnvironmentClassifier().detect_environment(signals)


def resolve_credentials(env_path: PathLike, signals: ServerSignals) -> ResolutionResult:
    """Resolve the credentials to connect with from the file at *env_path*.

    Returns
    -------
    ResolutionResult
        ``credentials`` is ``None`` when neither stored set is usable.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> from pathlib import Path
    >>> tmp = TemporaryDirectory()
    >>> path = Path(tmp.name) / ".env"
    >>> write_dual_config(path, {"host": "localhost", "database": "dev"}, None, ServerSignals(server_name="localhost"))
    True
    >>> result = resolve_credentials(path, ServerSignals(server_name="portal.example.com"))
    >>> result.environment, result.detected_environment
    ('local', 'production')
    >>> tmp.cleanup()
    """

    new_correlation_id()
    return build_resolver(env_path, signals).resolve_credentials()


def write_dual_config(
    env_path: PathLike,
    local: CredentialSet | Mapping[str, Any] | None,
    live: CredentialSet | Mapping[str, Any] | None,
    signals: ServerSignals,
) -> bool:
    """Store the given credential sets and refresh the active ``DB_*`` block.

    Returns ``False`` only when the file cannot be read back or written.
    """

    new_correlation_id()
    return build_resolver(env_path, signals).write_dual_config(local, live)


def save_environment_credentials(
    env_path: PathLike,
    label: str,
    credentials: CredentialSet | Mapping[str, Any],
    signals: ServerSignals,
) -> bool:
    """Replace the *label* (``local``/``live``) set, keeping the other one.

    Raises
    ------
    ValidationError
        If *label* is unknown or *credentials* cannot be used to connect.
    """

    new_correlation_id()
    return build_resolver(env_path, signals).save_environment_credentials(label, credentials)


def environment_warnings(env_path: PathLike, signals: ServerSignals) -> list[EnvironmentWarning]:
    """Return deployment advisories for *signals* and the file at *env_path*."""

    new_correlation_id()
    return EnvironmentClassifier().environment_warnings(signals, DotEnvCodec(env_path).read_all())


def environment_info(env_path: PathLike, signals: ServerSignals) -> EnvironmentInfo:
    """Return the verdict, TLS state, server identity and advisories for *signals*.

    The active ``DB_PASS`` in the file at *env_path* feeds the password advisory.
    """

    new_correlation_id()
    return EnvironmentClassifier().environment_info(signals, DotEnvCodec(env_path).read_all())


def resolve_base_url(signals: ServerSignals, app_url: str | None = None) -> str:
    """Return the base URL for *signals*, honouring an optional *app_url* override.

    Examples
    --------
    >>> resolve_base_url(ServerSignals(http_host="localhost:8080", script_name="/portal/index.php"))
    'http://localhost:8080/portal'
    """

    new_correlation_id()
    return BaseUrlResolver(app_url).resolve_base_url(signals)


__all__ = [
    "ConfigError",
    "ConfigWriteError",
    "CredentialResolver",
    "CredentialSet",
    "EnvironmentInfo",
    "EnvironmentWarning",
    "InvalidFormat",
    "ResolutionResult",
    "ServerSignals",
    "UnknownEnvironment",
    "ValidationError",
    "apply_active_credentials",
    "build_resolver",
    "detect_environment",
    "environment_info",
    "environment_warnings",
    "get_prefix_for_environment",
    "is_valid",
    "resolve_base_url",
    "resolve_credentials",
    "save_environment_credentials",
    "write_dual_config",
]
