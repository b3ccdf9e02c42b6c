"""Execution-environment classifier.

Purpose
-------
Decide from ambient server signals whether the process is running on a
developer machine (``localhost``) or on a deployed server (``production``).
The verdict selects which stored credential set is preferred.

Contents
--------
* :class:`EnvironmentClassifier` – the ordered rule set.
* :class:`EnvironmentWarning` – advisory produced by
  :meth:`EnvironmentClassifier.environment_warnings`.
* :class:`EnvironmentInfo` – diagnostic summary from
  :meth:`EnvironmentClassifier.environment_info`.
* :func:`config_file_mode` – permission bits for a freshly written config file.

System Role
-----------
Implements :class:`lib_dual_env_config.application.ports.EnvironmentDetector`.
Classification is a pure function of the signal bundle and never raises.
"""

from __future__ import annotations

import platform
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Final

from ...domain.resolution import LOCALHOST, PRODUCTION, environment_label
from ...observability import log_debug
from ..signals.default import ServerSignals

_LOCAL_SERVER_NAMES: Final[frozenset[str]] = frozenset({"localhost", "127.0.0.1", "::1", "localhost.localdomain"})
_LOOPBACK_ADDRESSES: Final[frozenset[str]] = frozenset({"127.0.0.1", "::1", "0.0.0.0"})
_DEV_DOMAIN: Final[re.Pattern[str]] = re.compile(r"\.(local|test|dev)$", re.IGNORECASE)
_DEV_STACKS: Final[tuple[str, ...]] = ("xampp", "mamp", "wamp")
_WEAK_PASSWORDS: Final[frozenset[str]] = frozenset({"", "root"})


@dataclass(frozen=True, slots=True)
class EnvironmentWarning:
    """A deployment advisory (``kind`` is ``security`` or ``info``)."""

    kind: str
    severity: str
    message: str


@dataclass(frozen=True, slots=True)
class EnvironmentInfo:
    """Diagnostic summary of the execution context shown to operators."""

    environment: str
    is_localhost: bool
    is_production: bool
    is_https: bool
    server_name: str
    server_software: str
    python_version: str
    platform: str
    is_windows: bool
    warnings: list[EnvironmentWarning] = field(default_factory=list)


class EnvironmentClassifier:
    """Classify the execution context as ``localhost`` or ``production``.

    Examples
    --------
    >>> classifier = EnvironmentClassifier()
    >>> classifier.detect_environment(ServerSignals(server_name="myapp.local"))
    'localhost'
    >>> classifier.detect_environment(ServerSignals(server_name="example.com", server_addr="203.0.113.50"))
    'production'
    """

    def detect_environment(self, signals: ServerSignals) -> str:
        """Return ``"localhost"`` or ``"production"``; the first matching rule wins."""

        reason = _localhost_reason(signals)
        verdict = PRODUCTION if reason is None else LOCALHOST
        log_debug("environment_detected", operation="detect", environment=verdict, reason=reason)
        return verdict

    def active_environment_label(self, signals: ServerSignals) -> str:
        """Return ``"local"`` on localhost and ``"live"`` on production."""

        return environment_label(self.detect_environment(signals))

    def is_localhost(self, signals: ServerSignals) -> bool:
        return self.detect_environment(signals) == LOCALHOST

    def is_production(self, signals: ServerSignals) -> bool:
        return self.detect_environment(signals) == PRODUCTION

    def environment_warnings(
        self,
        signals: ServerSignals,
        settings: Mapping[str, str] | None = None,
    ) -> list[EnvironmentWarning]:
        """List advisories for the detected environment.

        On production, warn when the request carries no HTTPS indicator and
        when the active ``DB_PASS`` in *settings* is empty or ``root``. On
        localhost, return a single informational notice.
        """

        if self.detect_environment(signals) == LOCALHOST:
            return [
                EnvironmentWarning(
                    "info",
                    "low",
                    "Running in a local development environment. Some security checks are relaxed.",
                )
            ]

        warnings: list[EnvironmentWarning] = []
        if not _has_https_indicator(signals):
            warnings.append(
                EnvironmentWarning(
                    "security",
                    "high",
                    "Production server is not serving over HTTPS. Enabling HTTPS is strongly recommended.",
                )
            )
        if settings is not None and "DB_PASS" in settings and settings["DB_PASS"] in _WEAK_PASSWORDS:
            warnings.append(
                EnvironmentWarning(
                    "security",
                    "high",
                    "Using a default or empty database password in production is a security risk.",
                )
            )
        return warnings

    def environment_info(
        self,
        signals: ServerSignals,
        settings: Mapping[str, str] | None = None,
    ) -> EnvironmentInfo:
        """Summarise the verdict, TLS state, server identity and advisories.

        Missing server name or software is reported as ``"Unknown"``.

        Examples
        --------
        >>> info = EnvironmentClassifier().environment_info(ServerSignals(server_name="myapp.test", https="on"))
        >>> info.environment, info.is_https, info.server_software
        ('localhost', True, 'Unknown')
        """

        detected = self.detect_environment(signals)
        system = platform.system()
        return EnvironmentInfo(
            environment=detected,
            is_localhost=detected == LOCALHOST,
            is_production=detected == PRODUCTION,
            is_https=_has_https_indicator(signals),
            server_name=signals.server_name or "Unknown",
            server_software=signals.server_software or "Unknown",
            python_version=platform.python_version(),
            platform=system,
            is_windows=system == "Windows",
            warnings=self.environment_warnings(signals, settings),
        )


def config_file_mode(detected: str) -> int:
    """Return permission bits for the configuration file in *detected* environment.

    >>> oct(config_file_mode("production")), oct(config_file_mode("localhost"))
    ('0o600', '0o644')
    """

    return 0o644 if detected == LOCALHOST else 0o600


def _localhost_reason(signals: ServerSignals) -> str | None:
    """Return the name of the first localhost rule matching *signals*, if any."""

    if signals.server_name.lower() in _LOCAL_SERVER_NAMES:
        return "server_name"
    if signals.server_addr in _LOOPBACK_ADDRESSES:
        return "server_addr"
    if signals.remote_addr in _LOOPBACK_ADDRESSES:
        return "remote_addr"
    if _DEV_DOMAIN.search(signals.server_name):
        return "dev_domain"
    software = signals.server_software.lower()
    if any(stack in software for stack in _DEV_STACKS):
        return "server_software"
    return None


def _has_https_indicator(signals: ServerSignals) -> bool:
    return (bool(signals.https) and signals.https != "off") or signals.server_port.strip() == "443"
