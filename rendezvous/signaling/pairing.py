"""
Offer/answer pairing per negotiation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set

from .records import NegotiationId, PeerId


@dataclass(slots=True)
class Pairing:
    offerer: PeerId
    answerer: Optional[PeerId] = None

    @property
    def complete(self) -> bool:
        return self.answerer is not None

    def involves(self, identity: PeerId) -> bool:
        return identity == self.offerer or identity == self.answerer


class PairingTable:
    """
    Resolve which offerer and answerer belong to a negotiation.

    A second offer for the same negotiation replaces the first one and resets
    the answerer slot.
    """

    def __init__(self) -> None:
        self._pairings: Dict[NegotiationId, Pairing] = {}

    def __contains__(self, negotiation_id: object) -> bool:
        return negotiation_id in self._pairings

    def __len__(self) -> int:
        return len(self._pairings)

    def __iter__(self) -> Iterator[NegotiationId]:
        return iter(list(self._pairings))

    def get(self, negotiation_id: NegotiationId) -> Optional[Pairing]:
        return self._pairings.get(negotiation_id)

    def record_offer(self, negotiation_id: NegotiationId, offerer: PeerId) -> Pairing:
        pairing = Pairing(offerer=offerer)
        self._pairings[negotiation_id] = pairing
        return pairing

    def record_answer(
        self, negotiation_id: NegotiationId, *, offerer: PeerId, answerer: PeerId
    ) -> Pairing:
        pairing = Pairing(offerer=offerer, answerer=answerer)
        self._pairings[negotiation_id] = pairing
        return pairing

    def peers_of(self, identity: PeerId) -> Set[PeerId]:
        """Every identity paired with ``identity`` in a completed negotiation."""

        peers: Set[PeerId] = set()
        for pairing in self._pairings.values():
            if pairing.answerer is None:
                continue
            if pairing.offerer == identity:
                peers.add(pairing.answerer)
            elif pairing.answerer == identity:
                peers.add(pairing.offerer)
        peers.discard(identity)
        return peers

    def negotiations_of(self, identity: PeerId) -> List[NegotiationId]:
        return [nid for nid, pairing in self._pairings.items() if pairing.involves(identity)]

    def discard(self, negotiation_id: NegotiationId) -> Optional[Pairing]:
        return self._pairings.pop(negotiation_id, None)

    def discard_identity(self, identity: PeerId) -> List[NegotiationId]:
        removed = self.negotiations_of(identity)
        for negotiation_id in removed:
            del self._pairings[negotiation_id]
        return removed


__all__ = ["Pairing", "PairingTable"]
