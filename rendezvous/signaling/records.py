"""
Relay-stamped negotiation artefacts.

Offers and answers are immutable once created.  ICE candidates keep a mutable
``datetime`` because the relay restamps buffered candidates when their
negotiation pairs.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, NewType, Optional

PeerId = NewType("PeerId", str)
NegotiationId = NewType("NegotiationId", str)

Clock = Callable[[], int]


def epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class Offer:
    """SDP offer as relayed to the answering side."""

    sdp: str
    datetime: int
    connection_id: NegotiationId

    def to_dict(self) -> dict:
        return {
            "sdp": self.sdp,
            "datetime": int(self.datetime),
            "connectionId": self.connection_id,
        }


@dataclass(frozen=True, slots=True)
class Answer:
    """SDP answer as relayed back to the offerer."""

    sdp: str
    datetime: int
    connection_id: NegotiationId

    def to_dict(self) -> dict:
        return {
            "sdp": self.sdp,
            "datetime": int(self.datetime),
            "connectionId": self.connection_id,
        }


@dataclass(slots=True)
class IceCandidate:
    """Serialisable ICE candidate container."""

    candidate: str
    sdp_mline_index: Optional[int]
    sdp_mid: Optional[str]
    datetime: int
    connection_id: NegotiationId

    def to_dict(self) -> dict:
        return {
            "candidate": self.candidate,
            "sdpMLineIndex": self.sdp_mline_index,
            "sdpMid": self.sdp_mid,
            "datetime": int(self.datetime),
            "connectionId": self.connection_id,
        }


__all__ = [
    "Answer",
    "Clock",
    "IceCandidate",
    "NegotiationId",
    "Offer",
    "PeerId",
    "epoch_ms",
]
