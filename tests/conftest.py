"""Shared fixtures for the dual-environment configuration suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from lib_dual_env_config.adapters.signals.default import ServerSignals

APP_SETTINGS = "# Application\nAPP_NAME=Karyalay Portal\nAPP_URL=https://portal.example.com/\n\nSMTP_HOST=smtp.example.com\n"


@pytest.fixture()
def env_file(tmp_path: Path) -> Path:
    """A configuration file pre-populated with settings owned by the host application."""

    path = tmp_path / ".env"
    path.write_text(APP_SETTINGS, encoding="utf-8")
    return path


@pytest.fixture()
def localhost_signals() -> ServerSignals:
    return ServerSignals(server_name="localhost", server_addr="127.0.0.1")


@pytest.fixture()
def production_signals() -> ServerSignals:
    return ServerSignals(server_name="portal.example.com", server_addr="203.0.113.50", https="on")
