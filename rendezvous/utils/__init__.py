"""Utility helpers for the relay."""

from .logging import configure_logging

__all__ = ["configure_logging"]
