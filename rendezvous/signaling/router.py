"""
Message dispatch for the signaling relay.

Handlers run synchronously to completion; the ``send`` primitive handed in by
the transport must not block.  Nothing sent here is acknowledged, so an
identity with no live session simply receives nothing.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Generic, Iterable, Mapping

from pydantic import ValidationError

from .records import Answer, IceCandidate, NegotiationId, Offer, PeerId
from .registry import SessionT
from .schemas import CandidateData, Envelope, SessionDescriptionData
from .state import SignalingState

LOG = logging.getLogger(__name__)

SendCallable = Callable[[Any, Dict[str, Any]], None]


class Router(Generic[SessionT]):
    """Route connect/disconnect/offer/answer/candidate messages between peers."""

    def __init__(
        self,
        state: SignalingState[SessionT],
        send: SendCallable,
        *,
        private: bool = False,
    ) -> None:
        self.state = state
        self.private = private
        self._send = send
        self._handlers: Dict[str, Callable[[SessionT, Envelope], None]] = {
            "connect": self._on_connect,
            "disconnect": self._on_disconnect,
            "offer": self._on_offer,
            "answer": self._on_answer,
            "candidate": self._on_candidate,
        }

    # -------------------------------------------------------------- lifecycle

    def on_open(self, session: SessionT) -> None:
        self.state.open_session(session)

    def on_close(self, session: SessionT) -> None:
        self.state.close_session(session)

    # --------------------------------------------------------------- dispatch

    def dispatch(self, session: SessionT, message: Mapping[str, Any]) -> None:
        if not isinstance(message, Mapping):
            LOG.debug("Dropping non-object message %r", message)
            return
        handler = self._handlers.get(str(message.get("type") or ""))
        if handler is None:
            LOG.debug("Dropping message of unknown type %r", message.get("type"))
            return
        try:
            envelope = Envelope.model_validate(message)
            LOG.debug("%s from=%s to=%s", envelope.type, envelope.from_, envelope.to)
            handler(session, envelope)
        except ValidationError as exc:
            LOG.debug("Dropping malformed %s message: %s", message.get("type"), exc)

    # --------------------------------------------------------------- handlers

    def _on_connect(self, session: SessionT, envelope: Envelope) -> None:
        identity = PeerId(envelope.from_)
        self.state.bind(session, identity)
        self._emit(session, {"type": "connect", "from": identity, "to": identity})

    def _on_disconnect(self, session: SessionT, envelope: Envelope) -> None:
        identity = PeerId(envelope.from_)
        for peer in sorted(self.state.pairings.peers_of(identity)):
            self._send_to_identity(peer, {"type": "disconnect", "from": identity, "to": peer})
        removed = self.state.forget_identity(identity)
        LOG.info("Identity %s disconnected; dropped %d negotiation(s)", identity, len(removed))

    def _on_offer(self, session: SessionT, envelope: Envelope) -> None:
        data = SessionDescriptionData.model_validate(envelope.data or {})
        negotiation_id = NegotiationId(data.connection_id)
        offerer = PeerId(envelope.from_)

        self.state.pairings.record_offer(negotiation_id, offerer)
        self.state.touch(negotiation_id)
        offer = Offer(sdp=data.sdp, datetime=self.state.clock(), connection_id=negotiation_id)

        if self.private:
            self._send_to_identity(
                PeerId(envelope.to),
                {"type": "offer", "from": offerer, "to": envelope.to, "data": offer.to_dict()},
            )
            return

        self._broadcast(
            self.state.all_sessions(),
            {"type": "offer", "from": offerer, "to": "", "data": offer.to_dict()},
        )

    def _on_answer(self, session: SessionT, envelope: Envelope) -> None:
        data = SessionDescriptionData.model_validate(envelope.data or {})
        negotiation_id = NegotiationId(data.connection_id)
        answerer = PeerId(envelope.from_)
        offerer = PeerId(envelope.to)

        if offerer:
            self.state.pairings.record_answer(negotiation_id, offerer=offerer, answerer=answerer)
        self.state.touch(negotiation_id)
        now = self.state.clock()
        self.state.candidates.restamp(negotiation_id, now)

        answer = Answer(sdp=data.sdp, datetime=now, connection_id=negotiation_id)
        self._send_to_identity(
            offerer,
            {"type": "answer", "from": answerer, "to": offerer, "data": answer.to_dict()},
        )

    def _on_candidate(self, session: SessionT, envelope: Envelope) -> None:
        data = CandidateData.model_validate(envelope.data or {})
        negotiation_id = NegotiationId(data.connection_id)
        contributor = PeerId(envelope.from_)

        candidate = IceCandidate(
            candidate=data.candidate,
            sdp_mline_index=data.sdp_mline_index,
            sdp_mid=data.sdp_mid,
            datetime=self.state.clock(),
            connection_id=negotiation_id,
        )
        self.state.candidates.append(negotiation_id, contributor, candidate)
        self.state.touch(negotiation_id)
        self._send_to_identity(
            PeerId(envelope.to),
            {"type": "candidate", "from": contributor, "to": envelope.to, "data": candidate.to_dict()},
        )

    # ------------------------------------------------------------------ sends

    def _send_to_identity(self, identity: PeerId, payload: Dict[str, Any]) -> None:
        self._broadcast(self.state.sessions_for(identity), payload)

    def _broadcast(self, sessions: Iterable[SessionT], payload: Dict[str, Any]) -> None:
        for target in sessions:
            self._emit(target, payload)

    def _emit(self, session: SessionT, payload: Dict[str, Any]) -> None:
        self._send(session, dict(payload))


__all__ = ["Router", "SendCallable"]
