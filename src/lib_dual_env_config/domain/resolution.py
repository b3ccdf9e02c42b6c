"""Environment vocabulary and the credential preference table.

Purpose
-------
Keep the rules that pick one stored credential set over the other free of I/O
so they can be exercised exhaustively in tests and reused by both the resolver
and the codec's dual-config write.

Contents
--------
* :data:`LOCALHOST` / :data:`PRODUCTION` – classifier verdicts.
* :data:`LOCAL` / :data:`LIVE` – credential environment labels.
* :class:`ResolutionResult` – outcome of one resolution.
* :func:`choose_credentials` – the two-tier fallback table.
* :func:`environment_label` / :func:`get_prefix_for_environment` – lookups.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final

from .credentials import LIVE_PREFIX, LOCAL_PREFIX, CredentialSet, is_valid
from .errors import UnknownEnvironment

LOCALHOST: Final[str] = "localhost"
PRODUCTION: Final[str] = "production"

LOCAL: Final[str] = "local"
LIVE: Final[str] = "live"

_PREFIXES: Final[dict[str, str]] = {LOCAL: LOCAL_PREFIX, LIVE: LIVE_PREFIX}


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Outcome of one credential resolution.

    ``credentials`` is ``None`` when neither stored set is usable; callers are
    expected to treat that as "cannot connect" and prompt for reconfiguration.
    """

    credentials: CredentialSet | None
    environment: str | None
    detected_environment: str
    local_available: bool
    live_available: bool

    def as_dict(self, *, redact: bool = True) -> dict[str, Any]:
        """Serialise the result, masking the password unless *redact* is ``False``.

        Examples
        --------
        >>> result = choose_credentials(CredentialSet(host="h", database="d", password="pw"), None, LOCALHOST)
        >>> result.as_dict()["credentials"]["password"]
        '***'
        >>> result.as_dict(redact=False)["credentials"]["password"]
        'pw'
        """

        credentials: dict[str, str] | None = None
        if self.credentials is not None:
            credentials = self.credentials.redacted() if redact else self.credentials.as_dict()
        return {
            "credentials": credentials,
            "environment": self.environment,
            "detected_environment": self.detected_environment,
            "local_available": self.local_available,
            "live_available": self.live_available,
        }


def choose_credentials(
    local: CredentialSet | None,
    live: CredentialSet | None,
    detected: str,
) -> ResolutionResult:
    """Pick the authoritative set for the *detected* environment.

    Production prefers live then local; anything else prefers local then live.
    The winner is returned whole, never blended with the other set.

    Examples
    --------
    >>> live = CredentialSet(host="prod-db", database="app")
    >>> choose_credentials(None, live, LOCALHOST).environment
    'live'
    >>> choose_credentials(None, None, PRODUCTION).credentials is None
    True
    """

    local_valid = is_valid(local)
    live_valid = is_valid(live)

    if detected == PRODUCTION:
        order = ((LIVE, live, live_valid), (LOCAL, local, local_valid))
    else:
        order = ((LOCAL, local, local_valid), (LIVE, live, live_valid))

    chosen: CredentialSet | None = None
    label: str | None = None
    for candidate_label, candidate, valid in order:
        if valid:
            chosen, label = candidate, candidate_label
            break

    return ResolutionResult(
        credentials=chosen,
        environment=label,
        detected_environment=detected,
        local_available=local_valid,
        live_available=live_valid,
    )


def environment_label(detected: str) -> str:
    """Map a classifier verdict to the credential label (``local``/``live``).

    >>> environment_label(LOCALHOST), environment_label(PRODUCTION)
    ('local', 'live')
    """

    return LOCAL if detected == LOCALHOST else LIVE


def get_prefix_for_environment(label: str) -> str:
    """Return the key prefix for *label*.

    Raises
    ------
    UnknownEnvironment
        If *label* is not ``"local"`` or ``"live"``.

    Examples
    --------
    >>> get_prefix_for_environment("local")
    'DB_LOCAL_'
    >>> get_prefix_for_environment("live")
    'DB_LIVE_'
    """

    try:
        return _PREFIXES[label]
    except KeyError as exc:
        raise UnknownEnvironment(f"Unknown environment {label!r}; expected 'local' or 'live'") from exc
