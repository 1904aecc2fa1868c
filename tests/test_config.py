"""Tests covering profile loading and override precedence."""

from __future__ import annotations

from pathlib import Path

import pytest

from rendezvous.config import ConfigError, RelayConfig, load_config


@pytest.fixture
def profiles(tmp_path: Path) -> Path:
    path = tmp_path / "profiles.yaml"
    path.write_text(
        "default:\n"
        "  mode: public\n"
        "  port: 9000\n"
        "  negotiation_ttl: 30\n"
        "  unexpected: ignored\n"
        "locked:\n"
        "  mode: private\n",
        encoding="utf-8",
    )
    return path


def test_profile_values_apply(profiles: Path) -> None:
    config = load_config("default", path=profiles, environ={})

    assert config.port == 9000
    assert config.negotiation_ttl == 30.0
    assert config.is_private is False


def test_private_mode_is_the_only_point_to_point_mode(profiles: Path) -> None:
    assert load_config("locked", path=profiles, environ={}).is_private is True
    assert RelayConfig(mode="Private").is_private is False
    assert RelayConfig(mode="anything").is_private is False


def test_env_then_cli_precedence(profiles: Path) -> None:
    environ = {"RENDEZVOUS_MODE": "private", "RENDEZVOUS_PORT": "7000"}

    from_env = load_config("default", path=profiles, environ=environ)
    from_cli = load_config("default", path=profiles, environ=environ, overrides={"port": 6000, "host": None})

    assert from_env.mode == "private"
    assert from_env.port == 7000
    assert from_cli.port == 6000
    assert from_cli.host == RelayConfig().host


def test_missing_file_falls_back_to_defaults(tmp_path: Path) -> None:
    config = load_config("default", path=tmp_path / "absent.yaml", environ={})

    assert config == RelayConfig()


def test_unknown_profile_is_rejected(profiles: Path) -> None:
    with pytest.raises(ConfigError):
        load_config("nope", path=profiles, environ={})


def test_invalid_port_is_rejected(profiles: Path) -> None:
    with pytest.raises(ConfigError):
        load_config("default", path=profiles, environ={"RENDEZVOUS_PORT": "eighty"})


def test_bundled_profiles_load() -> None:
    config = load_config("private", environ={})

    assert config.is_private is True
    assert config.profile == "private"
