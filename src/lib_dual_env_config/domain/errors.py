"""Domain-level exception hierarchy.

Purpose
-------
Expose the error taxonomy shared by the dotenv codec, the credential resolver,
and consuming applications. The hierarchy lives in the domain layer so adapters
and the composition root can raise it without depending on each other.

Contents
--------
* :class:`ConfigError` – umbrella base class for all library errors.
* :class:`InvalidFormat` – a configuration file could not be decoded.
* :class:`ValidationError` – caller-supplied credentials or labels were rejected.
* :class:`UnknownEnvironment` – an environment label outside ``local``/``live``.
* :class:`ConfigWriteError` – the configuration file could not be written.

System Role
-----------
Resolution never raises for unusable credentials; an ineligible set simply
loses. The exceptions below cover the remaining failure modes. Public write
operations on the codec catch :class:`ConfigWriteError` and report ``False``.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_dual_env_config``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class InvalidFormat(ConfigError):
    """Raised when a configuration file exists but cannot be decoded as UTF-8 text.

    Only strict reads raise it; lenient readers treat the file as empty.
    """


class ValidationError(ConfigError):
    """Signifies that caller input failed semantic checks before being persisted.

    Typical Sources
    ---------------
    :meth:`lib_dual_env_config.application.resolution.CredentialResolver.save_environment_credentials`
    when the environment label is unknown or the credential set is unusable.
    """


class UnknownEnvironment(ConfigError, ValueError):
    """Raised for an environment label that is neither ``"local"`` nor ``"live"``."""


class ConfigWriteError(ConfigError):
    """Wraps filesystem errors raised while persisting the configuration file."""
