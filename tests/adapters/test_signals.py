from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from lib_dual_env_config.adapters.signals.default import ENVIRON_KEYS, ServerSignals


def test_from_environ_reads_cgi_names() -> None:
    signals = ServerSignals.from_environ(
        {
            "SERVER_NAME": "portal.example.com",
            "HTTP_X_FORWARDED_PROTO": "https",
            "HTTP_X_FORWARDED_HOST": "portal.example.com",
            "SCRIPT_NAME": "/portal/index.php",
            "PATH": "/usr/bin",
        }
    )
    assert signals.server_name == "portal.example.com"
    assert signals.forwarded_proto == "https"
    assert signals.forwarded_host == "portal.example.com"
    assert signals.script_name == "/portal/index.php"
    assert signals.server_addr == ""


def test_none_and_numbers_normalise_to_text() -> None:
    signals = ServerSignals.from_environ({"SERVER_PORT": 443, "HTTPS": None})
    assert signals.server_port == "443"
    assert signals.https == ""


def test_to_environ_skips_empty_fields() -> None:
    assert ServerSignals(server_name="localhost").to_environ() == {"SERVER_NAME": "localhost"}


@given(st.fixed_dictionaries({}, optional={key: st.text(max_size=10) for key in ENVIRON_KEYS.values()}))
def test_environ_round_trip(environ: dict[str, str]) -> None:
    signals = ServerSignals.from_environ(environ)
    assert signals.to_environ() == {key: value for key, value in environ.items() if value}
