"""Environment classifier tests.

Covers the ordered localhost rules, the production default, deployment
advisories, the diagnostic summary and configuration file permissions.
"""

from __future__ import annotations

import logging
import platform

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_dual_env_config.adapters.environment.classifier import EnvironmentClassifier, config_file_mode
from lib_dual_env_config.adapters.signals.default import ServerSignals

SIGNAL_TEXT = st.text(max_size=24)
SIGNALS = st.builds(
    ServerSignals,
    server_name=SIGNAL_TEXT,
    server_addr=SIGNAL_TEXT,
    remote_addr=SIGNAL_TEXT,
    server_software=SIGNAL_TEXT,
    https=SIGNAL_TEXT,
    server_port=SIGNAL_TEXT,
)

classifier = EnvironmentClassifier()


@pytest.mark.parametrize(
    "signals",
    [
        ServerSignals(server_name="localhost"),
        ServerSignals(server_name="LOCALHOST"),
        ServerSignals(server_name="127.0.0.1"),
        ServerSignals(server_name="::1"),
        ServerSignals(server_name="localhost.localdomain"),
        ServerSignals(server_name="example.com", server_addr="127.0.0.1"),
        ServerSignals(server_name="example.com", server_addr="0.0.0.0"),
        ServerSignals(server_name="example.com", server_addr="::1"),
        ServerSignals(server_name="example.com", remote_addr="127.0.0.1"),
        ServerSignals(server_name="myapp.local"),
        ServerSignals(server_name="myapp.test"),
        ServerSignals(server_name="MYAPP.DEV"),
        ServerSignals(server_software="Apache/2.4.58 (Win64) XAMPP"),
        ServerSignals(server_software="MAMP PRO"),
        ServerSignals(server_software="wampserver"),
    ],
)
def test_localhost_rules(signals: ServerSignals) -> None:
    assert classifier.detect_environment(signals) == "localhost"
    assert classifier.is_localhost(signals)
    assert classifier.active_environment_label(signals) == "local"


@pytest.mark.parametrize(
    "signals",
    [
        ServerSignals(server_name="example.com", server_addr="203.0.113.50"),
        ServerSignals(server_name="local.example.com"),
        ServerSignals(server_name="myapp.localhost.com"),
        ServerSignals(server_name="developer.io", server_software="nginx/1.25"),
        ServerSignals(),
    ],
)
def test_production_by_default(signals: ServerSignals) -> None:
    assert classifier.detect_environment(signals) == "production"
    assert classifier.is_production(signals)
    assert classifier.active_environment_label(signals) == "live"


@given(signals=SIGNALS)
def test_classification_is_deterministic(signals: ServerSignals) -> None:
    assert classifier.detect_environment(signals) == classifier.detect_environment(signals)
    assert classifier.detect_environment(signals) in {"localhost", "production"}


@given(name=st.from_regex(r"[a-z0-9-]{1,12}", fullmatch=True), tld=st.sampled_from(["local", "test", "dev"]), addr=SIGNAL_TEXT)
def test_dev_domains_win_over_public_addresses(name: str, tld: str, addr: str) -> None:
    signals = ServerSignals(server_name=f"{name}.{tld}", server_addr=addr, remote_addr="198.51.100.7")
    assert classifier.detect_environment(signals) == "localhost"


def test_detection_logs_matching_rule(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="lib_dual_env_config")
    classifier.detect_environment(ServerSignals(server_name="shop.test"))
    context = getattr(caplog.records[-1], "context")
    assert context["environment"] == "localhost"
    assert context["reason"] == "dev_domain"


def test_production_without_https_warns() -> None:
    warnings = classifier.environment_warnings(ServerSignals(server_name="example.com"), {"DB_PASS": "root"})
    assert [warning.kind for warning in warnings] == ["security", "security"]
    assert "HTTPS" in warnings[0].message
    assert "password" in warnings[1].message


def test_production_with_https_and_strong_password_is_quiet() -> None:
    signals = ServerSignals(server_name="example.com", server_port="443")
    assert classifier.environment_warnings(signals, {"DB_PASS": "long-random-secret"}) == []
    assert classifier.environment_warnings(ServerSignals(server_name="example.com", https="on")) == []


def test_https_off_counts_as_plain_http() -> None:
    warnings = classifier.environment_warnings(ServerSignals(server_name="example.com", https="off"))
    assert len(warnings) == 1


def test_localhost_gets_single_notice() -> None:
    warnings = classifier.environment_warnings(ServerSignals(server_name="localhost"), {"DB_PASS": ""})
    assert len(warnings) == 1
    assert warnings[0].kind == "info"


def test_config_file_mode() -> None:
    assert config_file_mode("localhost") == 0o644
    assert config_file_mode("production") == 0o600


def test_environment_info_on_https_production() -> None:
    signals = ServerSignals(server_name="portal.example.com", server_software="nginx/1.25", https="on")
    info = classifier.environment_info(signals, {"DB_PASS": "root"})

    assert info.environment == "production"
    assert info.is_production and not info.is_localhost
    assert info.is_https
    assert info.server_name == "portal.example.com"
    assert info.server_software == "nginx/1.25"
    assert info.python_version == platform.python_version()
    assert info.is_windows == (platform.system() == "Windows")
    assert [warning.kind for warning in info.warnings] == ["security"]


def test_environment_info_reports_unknown_server_identity() -> None:
    info = classifier.environment_info(ServerSignals(server_addr="127.0.0.1", server_port="443"))

    assert info.environment == "localhost"
    assert info.is_https
    assert info.server_name == "Unknown"
    assert info.server_software == "Unknown"
    assert [warning.kind for warning in info.warnings] == ["info"]
