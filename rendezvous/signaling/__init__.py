"""
Signaling core: registries, pairing, candidate buffering and routing.
"""

from __future__ import annotations

from .candidates import CandidateStore
from .pairing import Pairing, PairingTable
from .records import Answer, IceCandidate, NegotiationId, Offer, PeerId
from .registry import IdentityRegistry, SessionRegistry
from .router import Router
from .state import SignalingState

__all__ = [
    "Answer",
    "CandidateStore",
    "IceCandidate",
    "IdentityRegistry",
    "NegotiationId",
    "Offer",
    "Pairing",
    "PairingTable",
    "PeerId",
    "Router",
    "SessionRegistry",
    "SignalingState",
]
