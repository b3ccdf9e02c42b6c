"""Credential resolution use case tests.

The resolver is driven through in-memory fakes for the store and detector so
the preference table can be checked exhaustively without touching disk.
"""

from __future__ import annotations

import itertools
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from lib_dual_env_config.adapters.dotenv.codec import DotEnvCodec
from lib_dual_env_config.adapters.environment.classifier import EnvironmentClassifier
from lib_dual_env_config.adapters.signals.default import ServerSignals
from lib_dual_env_config.application.resolution import CredentialResolver, apply_active_credentials
from lib_dual_env_config.domain.credentials import LIVE_PREFIX, LOCAL_PREFIX, CredentialSet
from lib_dual_env_config.domain.errors import ValidationError
from lib_dual_env_config.domain.resolution import ResolutionResult

LOCAL = CredentialSet(host="localhost", database="karyalay_dev", username="root")
LIVE = CredentialSet(host="db.example.com", database="karyalay", username="portal", password="s3cret")
BROKEN = CredentialSet(host="db.example.com")


class FakeStore:
    """In-memory credential store recording the last dual write."""

    def __init__(self, blocks: Mapping[str, CredentialSet] | None = None) -> None:
        self.blocks = dict(blocks or {})
        self.writes: list[dict[str, Any]] = []

    def read_all(self) -> dict[str, str]:
        return {}

    def read_credential_block(self, prefix: str) -> CredentialSet:
        return self.blocks.get(prefix, CredentialSet())

    def write_dual_config(self, local, live, *, detected: str, mode: int = 0o600) -> bool:
        self.writes.append({"local": local, "live": live, "detected": detected, "mode": mode})
        if local is not None:
            self.blocks[LOCAL_PREFIX] = local
        if live is not None:
            self.blocks[LIVE_PREFIX] = live
        return True


class FixedDetector:
    def __init__(self, verdict: str) -> None:
        self.verdict = verdict

    def detect_environment(self, signals: ServerSignals) -> str:
        return self.verdict


def make_resolver(local: CredentialSet, live: CredentialSet, detected: str) -> tuple[CredentialResolver, FakeStore]:
    store = FakeStore({LOCAL_PREFIX: local, LIVE_PREFIX: live})
    return CredentialResolver(store, FixedDetector(detected), ServerSignals()), store


def expected_environment(local_ok: bool, live_ok: bool, detected: str) -> str | None:
    order = [("live", live_ok), ("local", local_ok)] if detected == "production" else [("local", local_ok), ("live", live_ok)]
    return next((label for label, usable in order if usable), None)


@pytest.mark.parametrize(
    ("local_ok", "live_ok", "detected"),
    list(itertools.product([True, False], [True, False], ["localhost", "production"])),
)
def test_preference_table(local_ok: bool, live_ok: bool, detected: str) -> None:
    """Every combination of usable sets and verdicts resolves per the preference order."""

    resolver, _ = make_resolver(LOCAL if local_ok else BROKEN, LIVE if live_ok else CredentialSet(), detected)
    result = resolver.resolve_credentials()

    environment = expected_environment(local_ok, live_ok, detected)
    assert result.environment == environment
    assert result.detected_environment == detected
    assert result.local_available is local_ok
    assert result.live_available is live_ok
    if environment is None:
        assert result.credentials is None
    else:
        assert result.credentials == (LOCAL if environment == "local" else LIVE)


def test_resolution_is_idempotent() -> None:
    resolver, _ = make_resolver(LOCAL, LIVE, "production")
    assert resolver.resolve_credentials() == resolver.resolve_credentials()


def test_result_as_dict_redacts_password() -> None:
    resolver, _ = make_resolver(LOCAL, LIVE, "production")
    payload = resolver.resolve_credentials().as_dict()
    assert payload["environment"] == "live"
    assert payload["credentials"]["password"] == "***"
    assert resolver.resolve_credentials().as_dict(redact=False)["credentials"]["password"] == "s3cret"


def test_unresolved_result_serialises_null_credentials() -> None:
    result = ResolutionResult(None, None, "localhost", False, False)
    assert result.as_dict()["credentials"] is None


def test_read_environment_credentials_filters_unusable_sets() -> None:
    resolver, _ = make_resolver(BROKEN, LIVE, "localhost")
    assert resolver.read_environment_credentials("live") == LIVE
    assert resolver.read_environment_credentials("local") is None
    assert resolver.has_environment_credentials("live")
    assert not resolver.has_environment_credentials("local")


def test_write_dual_config_passes_verdict_and_mode() -> None:
    resolver, store = make_resolver(LOCAL, LIVE, "localhost")
    assert resolver.write_dual_config(LOCAL, None)
    assert store.writes[-1] == {"local": LOCAL, "live": None, "detected": "localhost", "mode": 0o644}


def test_save_keeps_other_usable_environment() -> None:
    resolver, store = make_resolver(LOCAL, LIVE, "production")
    replacement = CredentialSet(host="db2.example.com", database="karyalay")

    assert resolver.save_environment_credentials("live", replacement)

    assert store.writes[-1]["local"] == LOCAL
    assert store.writes[-1]["live"] == replacement
    assert store.writes[-1]["mode"] == 0o600


def test_save_does_not_resurrect_unusable_other_set() -> None:
    resolver, store = make_resolver(LOCAL, BROKEN, "localhost")
    assert resolver.save_environment_credentials("local", {"unix_socket": "/tmp/mysql.sock", "database": "dev"})
    assert store.writes[-1]["live"] is None
    assert store.writes[-1]["local"].port == "3306"


@pytest.mark.parametrize(
    ("label", "credentials", "message"),
    [
        ("staging", {"host": "db", "database": "app"}, "staging"),
        ("live", {"host": "db"}, "Database name"),
        ("local", {"database": "app"}, "host or unix socket"),
    ],
)
def test_save_rejects_unusable_input(label: str, credentials: dict[str, str], message: str) -> None:
    resolver, store = make_resolver(LOCAL, LIVE, "localhost")
    with pytest.raises(ValidationError, match=message):
        resolver.save_environment_credentials(label, credentials)
    assert store.writes == []


def test_resolver_against_real_adapters(env_file: Path, production_signals: ServerSignals) -> None:
    """The default codec and classifier drive a full write/resolve cycle."""

    resolver = CredentialResolver(DotEnvCodec(env_file), EnvironmentClassifier(), production_signals)
    assert resolver.write_dual_config(LOCAL, LIVE)

    result = resolver.resolve_credentials()
    assert result.environment == "live"
    assert DotEnvCodec(env_file).read_all()["DB_HOST"] == "db.example.com"


def test_apply_active_credentials_exports_db_variables() -> None:
    environ: dict[str, str] = {"DB_HOST": "stale", "OTHER": "kept"}
    apply_active_credentials(LIVE, environ)
    assert environ == {
        "OTHER": "kept",
        "DB_HOST": "db.example.com",
        "DB_PORT": "3306",
        "DB_NAME": "karyalay",
        "DB_USER": "portal",
        "DB_PASS": "s3cret",
        "DB_UNIX_SOCKET": "",
    }


def test_apply_active_credentials_defaults_to_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    environ: dict[str, str] = {}
    monkeypatch.setattr(os, "environ", environ)

    apply_active_credentials(LOCAL)

    assert environ["DB_NAME"] == "karyalay_dev"
    assert environ["DB_PASS"] == ""
