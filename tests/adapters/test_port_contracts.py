"""Adapter contract tests for the default ports implementation.

Verify the default adapters keep satisfying the application-layer protocols in
``lib_dual_env_config.application.ports`` so the resolver can be driven by any
store or detector that honours them.
"""

from __future__ import annotations

from pathlib import Path

from lib_dual_env_config.adapters.dotenv.codec import DotEnvCodec
from lib_dual_env_config.adapters.environment.classifier import EnvironmentClassifier
from lib_dual_env_config.adapters.signals.default import ServerSignals
from lib_dual_env_config.application import ports
from lib_dual_env_config.domain.credentials import LIVE_PREFIX, CredentialSet


def test_environment_classifier_contract() -> None:
    """EnvironmentClassifier must fulfil EnvironmentDetector and return one of the two verdicts."""

    classifier = EnvironmentClassifier()
    assert isinstance(classifier, ports.EnvironmentDetector)
    assert classifier.detect_environment(ServerSignals()) == "production"


def test_dotenv_codec_contract(env_file: Path) -> None:
    """DotEnvCodec must fulfil CredentialStore and read back what it wrote."""

    codec = DotEnvCodec(env_file)
    assert isinstance(codec, ports.CredentialStore)

    live = CredentialSet(host="db.example.com", database="portal")
    assert codec.write_dual_config(None, live, detected="production", mode=0o600) is True
    assert codec.read_credential_block(LIVE_PREFIX) == live
    assert codec.read_all()["APP_NAME"] == "Karyalay Portal"
