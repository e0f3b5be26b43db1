"""Environment-driven configuration for specguard front ends."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "SPECGUARD_"

LOG_FORMATS = ("text", "json")


def get_flag_env(flag_name: str, *, default: str = "", env: Optional[Mapping[str, str]] = None) -> str:
    """Return environment value for ``flag_name`` with lowercase fallback.

    Emits a deprecation warning when the lowercase variant is used.
    """

    env = os.environ if env is None else env
    value = env.get(flag_name)
    if value is None:
        lower_key = flag_name.lower()
        value = env.get(lower_key)
        if value is not None:
            logger.warning(
                "Using deprecated lowercase environment variable %s; prefer %s",
                lower_key,
                flag_name,
            )
    return value if value is not None else default


def _get_float_from_env(env: Mapping[str, str], keys: Iterable[str], default: Optional[float]) -> Optional[float]:
    """Read the first valid float from the provided environment keys."""
    for key in keys:
        raw = get_flag_env(key, default="", env=env)
        if not raw:
            continue
        try:
            return float(raw)
        except ValueError:
            logger.warning("Invalid float for %s=%r; using default %s", key, raw, default)
    return default


def _get_bool_from_env(env: Mapping[str, str], keys: Iterable[str], default: bool) -> bool:
    """Read the first boolean-like value from the provided environment keys."""

    truthy = {"true", "1", "yes", "on"}
    falsy = {"false", "0", "no", "off"}
    for key in keys:
        raw = get_flag_env(key, default="", env=env)
        if not raw:
            continue
        lowered = raw.strip().lower()
        if lowered in truthy:
            return True
        if lowered in falsy:
            return False
        logger.warning("Invalid boolean for %s=%r; using default %s", key, raw, default)
    return default


@dataclass(frozen=True)
class SpecGuardSettings:
    """Defaults consumed by the CLI and the suite builder."""

    log_level: str = "INFO"
    log_format: str = "text"
    spec_path: str = "openapi.yaml"
    base_ref: str = "origin/main"
    git_timeout_seconds: Optional[float] = None
    enforce_semver: bool = False
    warn_missing_examples: bool = True

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, env_prefix: str = ENV_PREFIX) -> "SpecGuardSettings":
        env = os.environ if env is None else env
        defaults = cls()

        log_format = get_flag_env(f"{env_prefix}LOG_FORMAT", default=defaults.log_format, env=env).strip().lower()
        if log_format not in LOG_FORMATS:
            logger.warning("Unknown log format %r; using %s", log_format, defaults.log_format)
            log_format = defaults.log_format

        return cls(
            log_level=get_flag_env(f"{env_prefix}LOG_LEVEL", default=defaults.log_level, env=env).upper(),
            log_format=log_format,
            spec_path=get_flag_env(f"{env_prefix}SPEC_PATH", default=defaults.spec_path, env=env),
            base_ref=get_flag_env(f"{env_prefix}BASE_REF", default=defaults.base_ref, env=env),
            git_timeout_seconds=_get_float_from_env(
                env, [f"{env_prefix}GIT_TIMEOUT_SECONDS"], defaults.git_timeout_seconds
            ),
            enforce_semver=_get_bool_from_env(env, [f"{env_prefix}ENFORCE_SEMVER"], defaults.enforce_semver),
            warn_missing_examples=_get_bool_from_env(
                env, [f"{env_prefix}WARN_MISSING_EXAMPLES"], defaults.warn_missing_examples
            ),
        )

    def with_overrides(self, **overrides) -> "SpecGuardSettings":
        """Return a copy with the non-``None`` overrides applied."""
        return replace(self, **{key: value for key, value in overrides.items() if value is not None})


# Global settings instance
_settings_instance: SpecGuardSettings | None = None


def get_settings() -> SpecGuardSettings:
    """Return the configured settings, loading them from the environment on first use."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = SpecGuardSettings.from_env()
    return _settings_instance


def configure_settings(settings: Optional[SpecGuardSettings]) -> None:
    """Configure the global settings instance; ``None`` resets to lazy loading."""
    global _settings_instance
    _settings_instance = settings


__all__ = [
    "SpecGuardSettings",
    "get_settings",
    "configure_settings",
    "get_flag_env",
]
