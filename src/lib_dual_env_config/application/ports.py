"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts the credential resolver relies on so it can be
driven by the default adapters in production and by in-memory fakes in tests.

Contents
--------
* :class:`EnvironmentDetector` – classifies the execution context.
* :class:`CredentialStore` – reads and writes credential blocks.

System Role
-----------
These protocols enforce Dependency Inversion. The default implementations are
:class:`lib_dual_env_config.adapters.environment.classifier.EnvironmentClassifier`
and :class:`lib_dual_env_config.adapters.dotenv.codec.DotEnvCodec`.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from ..adapters.signals.default import ServerSignals
from ..domain.credentials import CredentialSet


@runtime_checkable
class EnvironmentDetector(Protocol):
    """Classify ambient signals as ``"localhost"`` or ``"production"``."""

    def detect_environment(self, signals: ServerSignals) -> str:
        """Return the verdict for *signals*; must never raise."""


@runtime_checkable
class CredentialStore(Protocol):
    """Persist and retrieve the prefixed credential blocks.

    Why
    ----
    Keep the resolution policy independent of the file format.
    """

    def read_all(self) -> dict[str, str]:
        """Return every stored ``key -> value`` pair."""

    def read_credential_block(self, prefix: str) -> CredentialSet:
        """Return the credential set stored under *prefix*."""

    def write_dual_config(
        self,
        local: CredentialSet | Mapping[str, Any] | None,
        live: CredentialSet | Mapping[str, Any] | None,
        *,
        detected: str,
        mode: int = ...,
    ) -> bool:
        """Store the given blocks and refresh the active alias; ``False`` on I/O failure."""
