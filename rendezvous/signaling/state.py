"""
Owned signaling state shared by the router and the debug endpoints.
"""

from __future__ import annotations

import logging
from typing import Dict, Generic, List, Set

from .candidates import CandidateStore
from .pairing import PairingTable
from .records import Clock, NegotiationId, PeerId, epoch_ms
from .registry import IdentityRegistry, SessionRegistry, SessionT

LOG = logging.getLogger(__name__)


class SignalingState(Generic[SessionT]):
    """
    Sessions, identities, pairings and buffered candidates for one relay.

    Only the router mutates an instance.  Pairings and candidates outlive the
    sessions that created them; they go away on an identity ``disconnect`` or
    through :meth:`evict_stale`.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        self.sessions: SessionRegistry[SessionT] = SessionRegistry()
        self.identities: IdentityRegistry[SessionT] = IdentityRegistry()
        self.pairings = PairingTable()
        self.candidates = CandidateStore()
        self.clock: Clock = clock if clock is not None else epoch_ms
        self._touched: Dict[NegotiationId, int] = {}

    # ---------------------------------------------------------------- sessions

    def open_session(self, session: SessionT) -> None:
        self.sessions.open(session)

    def close_session(self, session: SessionT) -> None:
        if session not in self.sessions:
            return
        for identity in self.sessions.close(session):
            self.identities.unbind(session, identity)

    def bind(self, session: SessionT, identity: PeerId) -> None:
        if session not in self.sessions:
            # late frame from a session the transport already closed
            return
        self.identities.bind(session, identity)
        self.sessions.add_identity(session, identity)

    def sessions_for(self, identity: PeerId) -> Set[SessionT]:
        return self.identities.sessions_for(identity)

    def all_sessions(self) -> List[SessionT]:
        return list(self.sessions)

    # ------------------------------------------------------------ negotiations

    def touch(self, negotiation_id: NegotiationId) -> None:
        self._touched[negotiation_id] = self.clock()

    def forget_identity(self, identity: PeerId) -> List[NegotiationId]:
        """Drop ``identity`` and every negotiation it took part in."""

        self.identities.remove(identity)
        self.sessions.discard_identity(identity)
        removed = set(self.pairings.discard_identity(identity))
        removed.update(self.candidates.negotiations_from(identity))
        for negotiation_id in removed:
            self.candidates.discard(negotiation_id)
            self._touched.pop(negotiation_id, None)
        return sorted(removed)

    def evict(self, negotiation_id: NegotiationId) -> None:
        self.pairings.discard(negotiation_id)
        self.candidates.discard(negotiation_id)
        self._touched.pop(negotiation_id, None)

    def evict_stale(self, ttl_ms: int) -> List[NegotiationId]:
        """
        Evict negotiations idle for at least ``ttl_ms`` with nobody left online.

        A negotiation whose offerer, answerer or any candidate contributor
        still has a live session is kept regardless of age.
        """

        if ttl_ms <= 0:
            return []
        cutoff = self.clock() - ttl_ms
        evicted: List[NegotiationId] = []
        known = set(self._touched) | set(self.pairings) | set(self.candidates)
        for negotiation_id in known:
            if self._touched.get(negotiation_id, 0) > cutoff:
                continue
            if self._has_live_participant(negotiation_id):
                continue
            self.evict(negotiation_id)
            evicted.append(negotiation_id)
        if evicted:
            LOG.info("Evicted %d stale negotiation(s)", len(evicted))
        return sorted(evicted)

    def _has_live_participant(self, negotiation_id: NegotiationId) -> bool:
        participants: Set[PeerId] = set(self.candidates.contributors(negotiation_id))
        pairing = self.pairings.get(negotiation_id)
        if pairing is not None:
            participants.add(pairing.offerer)
            if pairing.answerer is not None:
                participants.add(pairing.answerer)
        return any(self.identities.has_live_sessions(identity) for identity in participants)

    def snapshot(self) -> dict:
        return {
            "sessions": len(self.sessions),
            "identities": len(self.identities),
            "pairings": len(self.pairings),
            "candidates": len(self.candidates),
        }


__all__ = ["SignalingState"]
