"""`.env` codec with line-preserving credential upserts.

Purpose
-------
Read and write the flat ``KEY=VALUE`` configuration file that stores the local,
live and active credential blocks side by side with settings owned by the
surrounding application. Implements the
:class:`lib_dual_env_config.application.ports.CredentialStore` protocol.

Contents
--------
* :class:`ConfigDocument` – ordered line model of one file.
* :class:`DotEnvCodec` – file-backed reader/writer.
* :func:`encode_value` / :func:`decode_value` – value quoting rules.

System Role
-----------
Every write is a read-modify-write of the whole document: the target keys are
replaced in place (or appended), every other line is reproduced byte for byte,
and the result is committed with an atomic rename. Readers never fail on a
missing or unreadable file; they see an empty document instead.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Iterable

from ...domain.credentials import (
    ACTIVE_PREFIX,
    DEFAULT_PORT,
    LIVE_PREFIX,
    LOCAL_PREFIX,
    SUFFIX_FIELDS,
    CredentialSet,
    block_keys,
)
from ...domain.errors import ConfigWriteError, InvalidFormat
from ...domain.resolution import choose_credentials
from ...observability import log_debug, log_error, make_event

DEFAULT_FILE_MODE: Final[int] = 0o600

_SPECIAL_CHARACTERS: Final[frozenset[str]] = frozenset('=#"\'\\')
_ESCAPES: Final[dict[str, str]] = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r"}
_UNESCAPES: Final[dict[str, str]] = {"\\": "\\", '"': '"', "n": "\n", "r": "\r"}

_BOM: Final[str] = "\ufeff"

_BLOCK_HEADERS: Final[dict[str, str]] = {
    LOCAL_PREFIX: "Database credentials: local development environment",
    LIVE_PREFIX: "Database credentials: live production environment",
    ACTIVE_PREFIX: "Active database credentials (mirrors the resolved environment)",
}


@dataclass(slots=True)
class _Line:
    """One physical line: its raw text (terminator included) and assignment key, if any."""

    raw: str
    key: str | None = None

    @property
    def terminator(self) -> str:
        if self.raw.endswith("\r\n"):
            return "\r\n"
        if self.raw.endswith("\n"):
            return "\n"
        return ""

    @property
    def content(self) -> str:
        return self.raw[: len(self.raw) - len(self.terminator)]


class ConfigDocument:
    """Ordered line model of a ``KEY=VALUE`` file.

    Comments, blank lines and lines that are not assignments are kept as opaque
    text. Only :meth:`upsert` changes the document, and only the lines of the
    key it is given.

    Examples
    --------
    >>> doc = ConfigDocument.parse("# app\\nAPP_NAME=demo\\n")
    >>> doc.upsert("DB_HOST", "db.internal")
    >>> doc.render()
    '# app\\nAPP_NAME=demo\\nDB_HOST=db.internal\\n'
    >>> doc.values()["APP_NAME"]
    'demo'
    """

    def __init__(self, lines: Iterable[_Line] = (), *, bom: str = "") -> None:
        self._lines: list[_Line] = list(lines)
        self.bom = bom

    @classmethod
    def parse(cls, text: str) -> ConfigDocument:
        """Split *text* into lines on ``\\n`` only, keeping every terminator.

        A leading byte order mark is set aside so the first key parses cleanly;
        :meth:`render` puts it back.
        """

        bom = _BOM if text.startswith(_BOM) else ""
        return cls((_Line(raw, _assignment_key(raw)) for raw in _split_lines(text[len(bom) :])), bom=bom)

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, key: object) -> bool:
        return any(line.key == key for line in self._lines)

    def render(self) -> str:
        return self.bom + "".join(line.raw for line in self._lines)

    def values(self) -> dict[str, str]:
        """Return decoded values keyed by name; the first occurrence of a key wins."""

        result: dict[str, str] = {}
        for line in self._lines:
            if line.key is not None and line.key not in result:
                result[line.key] = decode_value(line.content.split("=", 1)[1])
        return result

    def upsert(self, key: str, value: str) -> None:
        """Replace the first line holding *key*, drop later duplicates, or append.

        The replaced line keeps its original line terminator.
        """

        encoded = f"{key}={encode_value(value)}"
        kept: list[_Line] = []
        replaced = False
        for line in self._lines:
            if line.key != key:
                kept.append(line)
            elif not replaced:
                kept.append(_Line(encoded + line.terminator, key))
                replaced = True
        self._lines = kept
        if not replaced:
            self.append(_Line(encoded + self._newline(), key))

    def append_comment(self, text: str) -> None:
        """Append ``# text`` preceded by a blank separator when the document is not empty."""

        if self._lines:
            self.append(_Line(self._newline()))
        self.append(_Line(f"# {text}{self._newline()}"))

    def append(self, line: _Line) -> None:
        if self._lines and not self._lines[-1].terminator:
            last = self._lines[-1]
            self._lines[-1] = _Line(last.raw + self._newline(), last.key)
        self._lines.append(line)

    def _newline(self) -> str:
        for line in self._lines:
            if line.terminator:
                return line.terminator
        return "\n"


class DotEnvCodec:
    """File-backed reader and writer for the dual-environment configuration file.

    Why
    ----
    Both credential sets and the active alias must live in the application's
    single ``.env`` file without disturbing the settings around them.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> codec = DotEnvCodec(Path(tmp.name) / ".env")
    >>> codec.write_credential_block("DB_LOCAL_", {"host": "localhost", "database": "app"})
    True
    >>> codec.read_credential_block("DB_LOCAL_").port
    '3306'
    >>> tmp.cleanup()
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def load_document(self, *, strict: bool = False) -> ConfigDocument:
        """Parse the file into a :class:`ConfigDocument`.

        A missing file is an empty document. An unreadable or undecodable file
        is an empty document too unless *strict* is set, in which case
        :class:`ConfigWriteError` (unreadable) or :class:`InvalidFormat`
        (not UTF-8) is raised.
        """

        try:
            payload = self.path.read_bytes()
        except FileNotFoundError:
            return ConfigDocument()
        except OSError as exc:
            log_error("document_unreadable", **make_event("read", str(self.path), {"error": str(exc)}))
            if strict:
                raise ConfigWriteError(f"Cannot read {self.path} before updating it: {exc}") from exc
            return ConfigDocument()

        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            log_error("document_unreadable", **make_event("read", str(self.path), {"error": str(exc)}))
            if strict:
                raise InvalidFormat(f"{self.path} is not valid UTF-8 text") from exc
            return ConfigDocument()

        document = ConfigDocument.parse(text)
        log_debug("document_loaded", **make_event("read", str(self.path), {"lines": len(document)}))
        return document

    def read_all(self) -> dict[str, str]:
        """Return every assignment in the file as decoded ``key -> value`` text."""

        return self.load_document().values()

    def read_credential_block(self, prefix: str) -> CredentialSet:
        """Read the six keys under *prefix*.

        An absent ``PORT`` key yields ``"3306"``; an empty one stays empty.
        """

        return _block_from_values(self.read_all(), prefix)

    def write_credential_block(
        self,
        prefix: str,
        credentials: CredentialSet | Mapping[str, Any],
        *,
        mode: int = DEFAULT_FILE_MODE,
    ) -> bool:
        """Upsert the six ``prefix`` keys with *credentials*; ``False`` on I/O failure.

        A mapping is converted with :meth:`CredentialSet.from_mapping`, so a
        missing ``port`` key writes ``3306`` while an empty one writes ``""``.
        """

        credentials = _as_credentials(credentials)
        try:
            document = self.load_document(strict=True)
            _upsert_block(document, prefix, credentials)
            self._commit(document, mode)
        except (ConfigWriteError, InvalidFormat) as exc:
            log_error("document_write_failed", **make_event("write_block", str(self.path), {"error": str(exc)}))
            return False
        log_debug("credential_block_written", **make_event("write_block", str(self.path), {"prefix": prefix}))
        return True

    def write_dual_config(
        self,
        local: CredentialSet | Mapping[str, Any] | None,
        live: CredentialSet | Mapping[str, Any] | None,
        *,
        detected: str,
        mode: int = DEFAULT_FILE_MODE,
    ) -> bool:
        """Store the given local/live blocks and refresh the active ``DB_*`` alias.

        Blocks passed as ``None`` are left as they are in the file. The active
        block mirrors whichever stored set wins for the *detected* environment,
        or an empty set (port ``3306``) when neither is usable. All updates are
        committed in one atomic replacement.

        Returns
        -------
        bool
            ``False`` only when the file could not be read back or written.
        """

        try:
            document = self.load_document(strict=True)
            if local is not None:
                _upsert_block(document, LOCAL_PREFIX, _as_credentials(local))
            if live is not None:
                _upsert_block(document, LIVE_PREFIX, _as_credentials(live))
            stored = document.values()
            outcome = choose_credentials(
                _block_from_values(stored, LOCAL_PREFIX),
                _block_from_values(stored, LIVE_PREFIX),
                detected,
            )
            _upsert_block(document, ACTIVE_PREFIX, outcome.credentials or CredentialSet())
            self._commit(document, mode)
        except (ConfigWriteError, InvalidFormat) as exc:
            log_error("document_write_failed", **make_event("write_dual", str(self.path), {"error": str(exc)}))
            return False
        log_debug(
            "document_written",
            **make_event("write_dual", str(self.path), {"active": outcome.environment, "detected": detected}),
        )
        return True

    def _commit(self, document: ConfigDocument, mode: int) -> None:
        """Write *document* to a sibling temporary file and rename it over the target.

        A symlinked path is followed, so the file it points to is replaced and
        the link itself stays in place.
        """

        target = Path(os.path.realpath(self.path))
        try:
            handle, temporary = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
        except OSError as exc:
            raise ConfigWriteError(f"Cannot create a temporary file next to {target}: {exc}") from exc
        try:
            with os.fdopen(handle, "w", encoding="utf-8", newline="") as stream:
                stream.write(document.render())
            os.chmod(temporary, mode)
            os.replace(temporary, target)
        except (OSError, UnicodeEncodeError) as exc:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(temporary)
            raise ConfigWriteError(f"Cannot write {self.path}: {exc}") from exc


def encode_value(value: str) -> str:
    """Render *value* for the right-hand side of an assignment.

    Empty values stay empty; values with ``=``, ``#``, quotes, backslashes or
    whitespace are double-quoted and escaped; everything else is written bare.

    Examples
    --------
    >>> encode_value("secret")
    'secret'
    >>> encode_value('p@ss "word"')
    '"p@ss \\\\"word\\\\""'
    >>> encode_value("")
    ''
    """

    if not value:
        return ""
    if not any(char in _SPECIAL_CHARACTERS or char.isspace() for char in value):
        return value
    return '"' + "".join(_ESCAPES.get(char, char) for char in value) + '"'


def decode_value(raw: str) -> str:
    """Decode the right-hand side of an assignment.

    Double-quoted values have ``\\"``, ``\\\\``, ``\\n`` and ``\\r`` undone;
    single-quoted values are literal; bare values are trimmed.

    Examples
    --------
    >>> decode_value('"a \\\\"b\\\\""')
    'a "b"'
    >>> decode_value("'a \\\\n b'")
    'a \\\\n b'
    >>> decode_value("  bare  ")
    'bare'
    """

    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return _unescape(value[1:-1])
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1]
    return value


def _unescape(body: str) -> str:
    chars: list[str] = []
    index = 0
    while index < len(body):
        char = body[index]
        if char == "\\" and index + 1 < len(body) and body[index + 1] in _UNESCAPES:
            chars.append(_UNESCAPES[body[index + 1]])
            index += 2
            continue
        chars.append(char)
        index += 1
    return "".join(chars)


def _split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only; other Unicode line breaks belong to values."""

    pieces = text.split("\n")
    lines = [piece + "\n" for piece in pieces[:-1]]
    if pieces[-1]:
        lines.append(pieces[-1])
    return lines


def _assignment_key(raw: str) -> str | None:
    """Return the key of an assignment line, or ``None`` for comments and other text."""

    stripped = raw.strip()
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None
    key = stripped.split("=", 1)[0].strip()
    return key or None


def _as_credentials(credentials: CredentialSet | Mapping[str, Any]) -> CredentialSet:
    if isinstance(credentials, CredentialSet):
        return credentials
    return CredentialSet.from_mapping(credentials)


def _block_from_values(values: Mapping[str, str], prefix: str) -> CredentialSet:
    fields = {name: values.get(f"{prefix}{suffix}", "") for suffix, name in SUFFIX_FIELDS.items()}
    if f"{prefix}PORT" not in values:
        fields["port"] = DEFAULT_PORT
    return CredentialSet(**fields)


def _upsert_block(document: ConfigDocument, prefix: str, credentials: CredentialSet) -> None:
    keys = block_keys(prefix)
    if not any(key in document for key in keys):
        document.append_comment(_BLOCK_HEADERS.get(prefix, f"{prefix}* credentials"))
    values = credentials.as_dict()
    for key, name in zip(keys, SUFFIX_FIELDS.values()):
        document.upsert(key, values[name])
