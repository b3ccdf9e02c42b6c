"""Externally visible base URL resolution.

Purpose
-------
Work out the absolute URL a deployment is reachable at (protocol, host and
base path) so absolute links are correct on a developer machine, behind a
TLS-terminating proxy, and when mounted in a subdirectory.

Contents
--------
* :class:`BaseUrlResolver` – resolves the base URL and joins paths onto it.
* :data:`APP_ROOT_SEGMENTS` – script directories that sit below the app root.
"""

from __future__ import annotations

import posixpath
import re
from typing import Final

from ...observability import log_debug
from ..signals.default import ServerSignals

APP_ROOT_SEGMENTS: Final[frozenset[str]] = frozenset({"install", "public", "admin", "app"})

_SCHEME: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")
_STANDARD_PORTS: Final[frozenset[int]] = frozenset({80, 443})


class BaseUrlResolver:
    """Resolve the base URL from an optional override and the request signals.

    Why
    ----
    A configured ``APP_URL`` pins host and path, but its scheme cannot be
    trusted once a proxy terminates TLS, so the scheme always follows the
    request.

    Examples
    --------
    >>> signals = ServerSignals(http_host="example.com", server_port="443",
    ...                         script_name="/karyalayportal/install/index.php")
    >>> BaseUrlResolver().resolve_base_url(signals)
    'https://example.com/karyalayportal'
    >>> BaseUrlResolver("http://portal.example.com/").resolve_base_url(signals)
    'https://portal.example.com'
    """

    def __init__(self, app_url: str | None = None) -> None:
        self.app_url = app_url or None

    def resolve_base_url(self, signals: ServerSignals) -> str:
        """Return the base URL; the result never ends with ``/``."""

        protocol = self.detect_protocol(signals)
        if self.app_url is not None:
            resolved = protocol + _SCHEME.sub("", self.app_url, count=1)
        else:
            resolved = protocol + self.detect_host(signals) + self.detect_base_path(signals)
        resolved = resolved.rstrip("/")
        log_debug("base_url_resolved", operation="base_url", url=resolved, override=self.app_url is not None)
        return resolved

    def detect_protocol(self, signals: ServerSignals) -> str:
        """Return ``"https://"`` or ``"http://"``.

        >>> BaseUrlResolver().detect_protocol(ServerSignals(forwarded_proto="HTTPS"))
        'https://'
        >>> BaseUrlResolver().detect_protocol(ServerSignals(https="off"))
        'http://'
        """

        if signals.https and signals.https != "off":
            return "https://"
        if signals.forwarded_proto.lower() == "https":
            return "https://"
        if _port(signals) == 443:
            return "https://"
        return "http://"

    def detect_host(self, signals: ServerSignals) -> str:
        """Return the public host, including a non-standard port when known.

        >>> BaseUrlResolver().detect_host(ServerSignals(forwarded_host=" a.example, b.internal"))
        'a.example'
        >>> BaseUrlResolver().detect_host(ServerSignals(server_name="example.com", server_port="8080"))
        'example.com:8080'
        >>> BaseUrlResolver().detect_host(ServerSignals())
        'localhost'
        """

        if signals.forwarded_host:
            first = signals.forwarded_host.split(",", 1)[0].strip()
            if first:
                return first
        if signals.http_host:
            return signals.http_host
        if signals.server_name:
            port = _port(signals)
            if port is None or port in _STANDARD_PORTS or signals.server_name.endswith(f":{port}"):
                return signals.server_name
            return f"{signals.server_name}:{port}"
        return "localhost"

    def detect_base_path(self, signals: ServerSignals) -> str:
        """Return the application's mount path (``""`` at the web root).

        >>> BaseUrlResolver().detect_base_path(ServerSignals(script_name="/karyalayportal/install/index.php"))
        '/karyalayportal'
        >>> BaseUrlResolver().detect_base_path(ServerSignals(script_name="/install/index.php"))
        ''
        """

        script = signals.script_name.replace("\\", "/")
        if not script:
            return ""
        segments = [segment for segment in posixpath.dirname(script.rstrip("/")).split("/") if segment]
        for index, segment in enumerate(segments):
            if segment in APP_ROOT_SEGMENTS:
                segments = segments[:index]
                break
        return "/" + "/".join(segments) if segments else ""

    def url(self, path: str, signals: ServerSignals) -> str:
        """Join *path* onto the base URL with exactly one separating slash."""

        return f"{self.resolve_base_url(signals)}/{path.lstrip('/')}"

    def admin_dashboard_url(self, signals: ServerSignals) -> str:
        return self.url("/admin/dashboard.php", signals)

    def homepage_url(self, signals: ServerSignals) -> str:
        return self.url("/", signals)


def _port(signals: ServerSignals) -> int | None:
    try:
        return int(signals.server_port.strip())
    except ValueError:
        return None
