"""
HTTP and WebSocket surface of the relay.
"""

from __future__ import annotations

from .server import RelayManager, RelaySession, create_app

__all__ = ["RelayManager", "RelaySession", "create_app"]
