"""Public package surface for dual-environment database configuration.

Exports the composition-root functions from :mod:`lib_dual_env_config.core`
together with the value objects and errors they return or raise, plus the
logging hooks host applications use to attach handlers.
"""

from __future__ import annotations

from .core import (
    ConfigError,
    ConfigWriteError,
    CredentialResolver,
    CredentialSet,
    EnvironmentInfo,
    EnvironmentWarning,
    InvalidFormat,
    ResolutionResult,
    ServerSignals,
    UnknownEnvironment,
    ValidationError,
    apply_active_credentials,
    build_resolver,
    detect_environment,
    environment_info,
    environment_warnings,
    get_prefix_for_environment,
    is_valid,
    resolve_base_url,
    resolve_credentials,
    save_environment_credentials,
    write_dual_config,
)
from .observability import bind_correlation_id, get_logger

__all__ = [
    "ConfigError",
    "ConfigWriteError",
    "CredentialResolver",
    "CredentialSet",
    "EnvironmentInfo",
    "EnvironmentWarning",
    "InvalidFormat",
    "ResolutionResult",
    "ServerSignals",
    "UnknownEnvironment",
    "ValidationError",
    "apply_active_credentials",
    "bind_correlation_id",
    "build_resolver",
    "detect_environment",
    "environment_info",
    "environment_warnings",
    "get_logger",
    "get_prefix_for_environment",
    "is_valid",
    "resolve_base_url",
    "resolve_credentials",
    "save_environment_credentials",
    "write_dual_config",
]
