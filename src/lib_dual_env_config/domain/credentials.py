"""Credential value objects and key naming rules.

Purpose
-------
Anchor the :class:`CredentialSet` value object, the validity rule that decides
whether a set can be used to connect, and the key naming contract shared by the
codec and the resolver. The module contains no I/O.

Contents
--------
* :data:`LOCAL_PREFIX` / :data:`LIVE_PREFIX` / :data:`ACTIVE_PREFIX` – the
  three key families persisted in the configuration file.
* :data:`SUFFIX_FIELDS` – mapping from key suffix to credential field.
* :class:`CredentialSet` – immutable connection profile.
* :func:`is_valid` – the credential validator.
* :func:`block_keys` – the six keys of one prefix family.

System Role
-----------
Credential sets are transient: they are built from the configuration file or
from caller input and only their field values are ever persisted.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any, Final

LOCAL_PREFIX: Final[str] = "DB_LOCAL_"
LIVE_PREFIX: Final[str] = "DB_LIVE_"
ACTIVE_PREFIX: Final[str] = "DB_"

DEFAULT_PORT: Final[str] = "3306"
REDACTED: Final[str] = "***"

#: Key suffixes in the order they are written, mapped to ``CredentialSet`` fields.
SUFFIX_FIELDS: Final[dict[str, str]] = {
    "HOST": "host",
    "PORT": "port",
    "NAME": "database",
    "USER": "username",
    "PASS": "password",
    "UNIX_SOCKET": "unix_socket",
}


@dataclass(frozen=True, slots=True)
class CredentialSet:
    """One database connection profile.

    Why
    ----
    The resolver must hand exactly one complete profile to the connection
    layer; a frozen value object makes blending fields from two sources
    impossible by construction.

    Examples
    --------
    >>> creds = CredentialSet.from_mapping({"host": "db", "database": "app"})
    >>> creds.port
    '3306'
    >>> CredentialSet.from_mapping({"host": "db", "port": ""}).port
    ''
    >>> "secret" in repr(CredentialSet(password="secret"))
    False
    """

    host: str = ""
    port: str = DEFAULT_PORT
    database: str = ""
    username: str = ""
    password: str = field(default="", repr=False)
    unix_socket: str = ""

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> CredentialSet:
        """Build a set from caller input keyed by field name.

        ``port`` falls back to :data:`DEFAULT_PORT` only when the key is
        absent. An explicit empty string is kept as-is.
        """

        values = {name: _text(mapping.get(name)) for name in SUFFIX_FIELDS.values()}
        if "port" not in mapping:
            values["port"] = DEFAULT_PORT
        return cls(**values)

    def as_dict(self) -> dict[str, str]:
        """Return the six fields as a plain mutable ``dict``."""

        return asdict(self)

    def redacted(self) -> dict[str, str]:
        """Return :meth:`as_dict` with a non-empty password masked."""

        data = self.as_dict()
        if data["password"]:
            data["password"] = REDACTED
        return data


def is_valid(credentials: CredentialSet | None) -> bool:
    """Return ``True`` when *credentials* can be used to connect.

    A set is usable when it names a database and has either a host or a unix
    socket path.

    Examples
    --------
    >>> is_valid(CredentialSet(host="db", database="app"))
    True
    >>> is_valid(CredentialSet(unix_socket="/tmp/mysql.sock", database="app"))
    True
    >>> is_valid(CredentialSet(host="db"))
    False
    >>> is_valid(None)
    False
    """

    if credentials is None:
        return False
    return bool(credentials.database) and bool(credentials.host or credentials.unix_socket)


def block_keys(prefix: str) -> list[str]:
    """Return the six configuration keys of the *prefix* family in write order.

    Examples
    --------
    >>> block_keys("DB_LIVE_")[:2]
    ['DB_LIVE_HOST', 'DB_LIVE_PORT']
    """

    return [f"{prefix}{suffix}" for suffix in SUFFIX_FIELDS]


def _text(value: Any) -> str:
    """Coerce caller input to text, mapping ``None`` to the empty string."""

    return "" if value is None else str(value)
