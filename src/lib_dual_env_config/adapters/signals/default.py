"""Server/request signal bundle.

Purpose
-------
Carry the ambient facts about the current request (server name, addresses,
TLS indicators, forwarded headers, script path) into the classifier and the
base-URL resolver as a plain value, so neither component ever reads a live
request object or :data:`os.environ`.

Key behaviours
--------------
* :meth:`ServerSignals.from_environ` understands the CGI/WSGI variable names
  (``SERVER_NAME``, ``HTTP_X_FORWARDED_PROTO`` …).
* Missing and ``None`` values normalise to the empty string, which simply
  fails to match any rule downstream.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Final

#: CGI/WSGI variable name for every :class:`ServerSignals` field.
ENVIRON_KEYS: Final[dict[str, str]] = {
    "server_name": "SERVER_NAME",
    "server_addr": "SERVER_ADDR",
    "remote_addr": "REMOTE_ADDR",
    "server_software": "SERVER_SOFTWARE",
    "https": "HTTPS",
    "forwarded_proto": "HTTP_X_FORWARDED_PROTO",
    "forwarded_host": "HTTP_X_FORWARDED_HOST",
    "http_host": "HTTP_HOST",
    "server_port": "SERVER_PORT",
    "script_name": "SCRIPT_NAME",
}


@dataclass(frozen=True, slots=True)
class ServerSignals:
    """Ambient request/server facts, all optional and defaulting to ``""``."""

    server_name: str = ""
    server_addr: str = ""
    remote_addr: str = ""
    server_software: str = ""
    https: str = ""
    forwarded_proto: str = ""
    forwarded_host: str = ""
    http_host: str = ""
    server_port: str = ""
    script_name: str = ""

    @classmethod
    def from_environ(cls, environ: Mapping[str, Any]) -> ServerSignals:
        """Build a bundle from a CGI/WSGI style *environ* mapping.

        Examples
        --------
        >>> signals = ServerSignals.from_environ({"SERVER_NAME": "myapp.local", "SERVER_PORT": 8080})
        >>> signals.server_name, signals.server_port, signals.http_host
        ('myapp.local', '8080', '')
        """

        values = {name: _text(environ.get(key)) for name, key in ENVIRON_KEYS.items()}
        return cls(**values)

    def to_environ(self) -> dict[str, str]:
        """Return the non-empty signals keyed by their CGI/WSGI names."""

        return {
            ENVIRON_KEYS[item.name]: getattr(self, item.name)
            for item in fields(self)
            if getattr(self, item.name)
        }


def _text(value: Any) -> str:
    return "" if value is None else str(value)
