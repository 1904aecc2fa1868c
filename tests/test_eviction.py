"""Tests covering the stale negotiation sweep."""

from __future__ import annotations

import asyncio

from rendezvous.api.server import RelayManager
from rendezvous.config import RelayConfig
from rendezvous.signaling import IceCandidate, NegotiationId, PeerId, SignalingState


class FakeClock:
    def __init__(self) -> None:
        self.value = 0

    def now(self) -> int:
        return self.value


def _seed(state: SignalingState[str], nid: str, offerer: str, answerer: str) -> NegotiationId:
    negotiation_id = NegotiationId(nid)
    state.pairings.record_answer(negotiation_id, offerer=PeerId(offerer), answerer=PeerId(answerer))
    state.candidates.append(
        negotiation_id,
        PeerId(offerer),
        IceCandidate(candidate="c", sdp_mline_index=0, sdp_mid="0", datetime=0, connection_id=negotiation_id),
    )
    state.touch(negotiation_id)
    return negotiation_id


def test_evict_stale_skips_fresh_and_live_negotiations() -> None:
    clock = FakeClock()
    state: SignalingState[str] = SignalingState(clock=clock.now)
    state.open_session("s")
    state.bind("s", PeerId("alice"))

    live = _seed(state, "live", "alice", "bob")
    gone = _seed(state, "gone", "carol", "dave")
    clock.value = 5_000
    fresh = _seed(state, "fresh", "erin", "frank")

    evicted = state.evict_stale(ttl_ms=1_000)

    assert evicted == [gone]
    assert gone not in state.pairings
    assert gone not in state.candidates
    assert live in state.pairings
    assert fresh in state.pairings


def test_evict_stale_disabled_with_zero_ttl() -> None:
    clock = FakeClock()
    state: SignalingState[str] = SignalingState(clock=clock.now)
    nid = _seed(state, "n1", "carol", "dave")
    clock.value = 10_000

    assert state.evict_stale(ttl_ms=0) == []
    assert nid in state.pairings


def test_closing_last_session_makes_negotiation_evictable() -> None:
    clock = FakeClock()
    state: SignalingState[str] = SignalingState(clock=clock.now)
    state.open_session("s")
    state.bind("s", PeerId("alice"))
    nid = _seed(state, "n1", "alice", "bob")
    clock.value = 2_000

    assert state.evict_stale(ttl_ms=1_000) == []

    state.close_session("s")

    assert state.evict_stale(ttl_ms=1_000) == [nid]
    assert state.snapshot() == {"sessions": 0, "identities": 0, "pairings": 0, "candidates": 0}


def test_relay_manager_sweeps_stale_negotiations() -> None:
    clock = FakeClock()
    state: SignalingState = SignalingState(clock=clock.now)
    nid = _seed(state, "n1", "carol", "dave")
    clock.value = 5_000
    manager = RelayManager(RelayConfig(negotiation_ttl=1, sweep_interval=0.1), state=state)

    async def scenario() -> None:
        await manager.start()
        assert manager._sweep_task is not None  # type: ignore[attr-defined]
        await asyncio.sleep(0.35)
        assert nid not in state.pairings
        assert nid not in state.candidates
        await manager.stop()

    asyncio.run(scenario())

    assert manager._sweep_task is None  # type: ignore[attr-defined]
