"""Credential resolution use case.

Purpose
-------
Compose a credential store, an environment detector and the current signal
bundle to decide which stored credential set the application connects with,
and to update the stored sets through the same policy.

Contents
    - ``CredentialResolver``: the use case object.
    - ``apply_active_credentials``: exports a chosen set as ``DB_*`` variables.

System Role
-----------
Sits between the adapters and :mod:`lib_dual_env_config.core`. The preference
table itself lives in :func:`lib_dual_env_config.domain.resolution.choose_credentials`.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, MutableMapping
from typing import Any

from ..adapters.environment.classifier import config_file_mode
from ..adapters.signals.default import ServerSignals
from ..domain.credentials import ACTIVE_PREFIX, LIVE_PREFIX, LOCAL_PREFIX, SUFFIX_FIELDS, CredentialSet, is_valid
from ..domain.errors import UnknownEnvironment, ValidationError
from ..domain.resolution import LOCAL, ResolutionResult, choose_credentials, get_prefix_for_environment
from ..observability import log_debug, log_info, make_event
from .ports import CredentialStore, EnvironmentDetector


class CredentialResolver:
    """Pick and maintain the authoritative database credentials.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> from pathlib import Path
    >>> from lib_dual_env_config.adapters.dotenv.codec import DotEnvCodec
    >>> from lib_dual_env_config.adapters.environment.classifier import EnvironmentClassifier
    >>> tmp = TemporaryDirectory()
    >>> path = Path(tmp.name) / ".env"
    >>> _ = path.write_text("DB_LIVE_HOST=db.example.com\\nDB_LIVE_NAME=portal\\n", encoding="utf-8")
    >>> resolver = CredentialResolver(DotEnvCodec(path), EnvironmentClassifier(), ServerSignals(server_name="localhost"))
    >>> result = resolver.resolve_credentials()
    >>> result.environment, result.detected_environment, result.local_available
    ('live', 'localhost', False)
    >>> tmp.cleanup()
    """

    def __init__(self, store: CredentialStore, detector: EnvironmentDetector, signals: ServerSignals) -> None:
        self._store = store
        self._detector = detector
        self._signals = signals

    def resolve_credentials(self) -> ResolutionResult:
        """Return the credential set to connect with for the current signals.

        Reads both stored blocks, validates them and applies the preference
        table for the detected environment. Calling it twice without an
        intervening write yields equal results.
        """

        local = self._store.read_credential_block(LOCAL_PREFIX)
        live = self._store.read_credential_block(LIVE_PREFIX)
        detected = self._detector.detect_environment(self._signals)
        result = choose_credentials(local, live, detected)
        if result.credentials is None:
            log_info(
                "credentials_unresolved",
                **make_event(
                    "resolve",
                    None,
                    {"detected": detected, "local_available": result.local_available, "live_available": result.live_available},
                ),
            )
        else:
            log_debug("credentials_resolved", **make_event("resolve", None, {"environment": result.environment, "detected": detected}))
        return result

    def read_environment_credentials(self, label: str) -> CredentialSet | None:
        """Return the stored set for *label* (``local``/``live``) when it is usable."""

        credentials = self._store.read_credential_block(get_prefix_for_environment(label))
        return credentials if is_valid(credentials) else None

    def has_environment_credentials(self, label: str) -> bool:
        return self.read_environment_credentials(label) is not None

    def write_dual_config(
        self,
        local: CredentialSet | Mapping[str, Any] | None,
        live: CredentialSet | Mapping[str, Any] | None,
    ) -> bool:
        """Store the given blocks and mirror the winner into the active ``DB_*`` keys."""

        detected = self._detector.detect_environment(self._signals)
        return self._store.write_dual_config(local, live, detected=detected, mode=config_file_mode(detected))

    def save_environment_credentials(self, label: str, credentials: CredentialSet | Mapping[str, Any]) -> bool:
        """Replace the *label* credential set while keeping the other environment's usable set.

        Raises
        ------
        ValidationError
            If *label* is unknown or *credentials* is not a usable set.
        """

        try:
            get_prefix_for_environment(label)
        except UnknownEnvironment as exc:
            raise ValidationError(str(exc)) from exc

        if not isinstance(credentials, CredentialSet):
            credentials = CredentialSet.from_mapping(credentials)
        if not credentials.database:
            raise ValidationError("Database name is required.")
        if not (credentials.host or credentials.unix_socket):
            raise ValidationError("Database host or unix socket is required.")

        if label == LOCAL:
            return self.write_dual_config(credentials, self.read_environment_credentials("live"))
        return self.write_dual_config(self.read_environment_credentials("local"), credentials)


def apply_active_credentials(
    credentials: CredentialSet,
    environ: MutableMapping[str, str] | None = None,
) -> None:
    """Export *credentials* as ``DB_HOST`` … ``DB_UNIX_SOCKET`` into *environ*.

    Defaults to :data:`os.environ` so unrelated code reading plain ``DB_*``
    variables sees the resolved set.

    Examples
    --------
    >>> env: dict[str, str] = {}
    >>> apply_active_credentials(CredentialSet(host="db", database="app"), env)
    >>> env["DB_HOST"], env["DB_PORT"], env["DB_NAME"]
    ('db', '3306', 'app')
    """

    target = os.environ if environ is None else environ
    values = credentials.as_dict()
    for suffix, name in SUFFIX_FIELDS.items():
        target[f"{ACTIVE_PREFIX}{suffix}"] = values[name]
