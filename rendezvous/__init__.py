"""
Rendezvous relay package.

A WebSocket signaling relay for WebRTC: peers register an identity and
exchange offers, answers and ICE candidates addressed by identity.  The relay
never carries media.
"""

from __future__ import annotations

from .config import RelayConfig, load_config

__all__ = [
    "RelayConfig",
    "load_config",
]
