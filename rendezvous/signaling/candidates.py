"""
Per-negotiation ICE candidate buffer.

Candidates are keyed by negotiation and contributing identity so that each
sender's trickle keeps its own arrival order.  Nothing is ever removed from a
bucket; whole negotiations are dropped only on identity teardown or eviction.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Tuple

from .records import IceCandidate, NegotiationId, PeerId


class CandidateStore:
    def __init__(self) -> None:
        self._buckets: Dict[NegotiationId, Dict[PeerId, List[IceCandidate]]] = {}

    def __contains__(self, negotiation_id: object) -> bool:
        return negotiation_id in self._buckets

    def __len__(self) -> int:
        return sum(len(items) for per_peer in self._buckets.values() for items in per_peer.values())

    def __iter__(self) -> Iterator[NegotiationId]:
        return iter(list(self._buckets))

    def append(
        self, negotiation_id: NegotiationId, contributor: PeerId, candidate: IceCandidate
    ) -> None:
        per_peer = self._buckets.setdefault(negotiation_id, {})
        per_peer.setdefault(contributor, []).append(candidate)

    def candidates(self, negotiation_id: NegotiationId, contributor: PeerId) -> Tuple[IceCandidate, ...]:
        return tuple(self._buckets.get(negotiation_id, {}).get(contributor, ()))

    def contributors(self, negotiation_id: NegotiationId) -> Tuple[PeerId, ...]:
        return tuple(self._buckets.get(negotiation_id, {}))

    def restamp(self, negotiation_id: NegotiationId, timestamp: int) -> int:
        """
        Mark every candidate buffered under ``negotiation_id`` with ``timestamp``.

        Returns the number of candidates touched.
        """

        touched = 0
        for items in self._buckets.get(negotiation_id, {}).values():
            for candidate in items:
                candidate.datetime = timestamp
                touched += 1
        return touched

    def discard(self, negotiation_id: NegotiationId) -> None:
        self._buckets.pop(negotiation_id, None)

    def negotiations_from(self, contributor: PeerId) -> List[NegotiationId]:
        return [nid for nid, per_peer in self._buckets.items() if contributor in per_peer]


__all__ = ["CandidateStore"]
