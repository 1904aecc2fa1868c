"""
Relay configuration: YAML profiles, environment overrides and CLI values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

LOG = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent / "configs"
PROFILES_PATH = CONFIG_DIR / "profiles.yaml"

ENV_PROFILES_VAR = "RENDEZVOUS_PROFILES"
ENV_OVERRIDES = {
    "RENDEZVOUS_MODE": "mode",
    "RENDEZVOUS_HOST": "host",
    "RENDEZVOUS_PORT": "port",
}


class ConfigError(ValueError):
    """Raised when a profile or override cannot be applied."""


@dataclass(frozen=True)
class RelayConfig:
    profile: str = "default"
    mode: str = "public"
    host: str = "127.0.0.1"
    port: int = 80
    negotiation_ttl: float = 0.0
    sweep_interval: float = 60.0
    send_queue_size: int = 256
    log_level: str = "info"

    @property
    def is_private(self) -> bool:
        return self.mode == "private"

    def with_overrides(self, overrides: Mapping[str, Any]) -> "RelayConfig":
        known = {item.name: item for item in fields(self)}
        values: Dict[str, Any] = {}
        for key, value in overrides.items():
            if value is None:
                continue
            if key not in known:
                LOG.debug("Ignoring unknown config key %r", key)
                continue
            values[key] = _coerce(key, value, type(getattr(self, key)))
        return replace(self, **values)


def _coerce(key: str, value: Any, target: type) -> Any:
    try:
        coerced = target(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid value for {key}: {value!r}") from exc
    if target in (int, float) and coerced < 0:
        raise ConfigError(f"{key} must be non-negative")
    return coerced


def profiles_path() -> Path:
    env_path = os.environ.get(ENV_PROFILES_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return PROFILES_PATH


def read_profiles(path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    target = path or profiles_path()
    try:
        with target.open("r", encoding="utf-8") as handle:
            profiles = yaml.safe_load(handle) or {}
    except FileNotFoundError:
        LOG.warning("Profiles file %s not found; using defaults", target)
        return {}
    if not isinstance(profiles, dict):
        raise ConfigError(f"{target} must contain a mapping of profiles")
    return profiles


def load_config(
    profile: str = "default",
    *,
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> RelayConfig:
    """
    Resolve the effective configuration.

    Precedence, lowest first: dataclass defaults, the named profile, the
    ``RENDEZVOUS_*`` environment variables, then ``overrides`` (CLI values).
    """

    profiles = read_profiles(path)
    if profiles and profile not in profiles:
        raise ConfigError(f"unknown profile {profile!r}")
    profile_values = profiles.get(profile) or {}
    if not isinstance(profile_values, dict):
        raise ConfigError(f"profile {profile!r} must be a mapping")

    config = RelayConfig(profile=profile).with_overrides(profile_values)

    env = os.environ if environ is None else environ
    env_values = {field: env[name] for name, field in ENV_OVERRIDES.items() if env.get(name)}
    config = config.with_overrides(env_values)

    if overrides:
        config = config.with_overrides(overrides)
    return config


__all__ = ["ConfigError", "RelayConfig", "load_config", "read_profiles"]
