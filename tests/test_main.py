"""Tests covering CLI argument handling."""

from __future__ import annotations

import logging

from rendezvous.main import build_config, parse_args
from rendezvous.utils.logging import resolve_level


def test_cli_overrides_bundled_profile(monkeypatch) -> None:
    monkeypatch.delenv("RENDEZVOUS_MODE", raising=False)
    monkeypatch.delenv("RENDEZVOUS_PORT", raising=False)
    monkeypatch.delenv("RENDEZVOUS_HOST", raising=False)
    monkeypatch.delenv("RENDEZVOUS_PROFILES", raising=False)

    args = parse_args(["--profile", "local", "--mode", "private", "--port", "9999"])
    config = build_config(args)

    assert config.profile == "local"
    assert config.is_private is True
    assert config.port == 9999
    assert config.host == "127.0.0.1"
    assert config.log_level == "debug"


def test_resolve_level_accepts_names_and_numbers() -> None:
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(logging.WARNING) == logging.WARNING
    assert resolve_level("no-such-level") == logging.INFO
