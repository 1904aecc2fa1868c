"""Tests covering session/identity bookkeeping."""

from __future__ import annotations

from rendezvous.signaling import PeerId, SignalingState


def test_bind_allows_many_sessions_per_identity() -> None:
    state: SignalingState[str] = SignalingState()
    state.open_session("tab-1")
    state.open_session("tab-2")

    state.bind("tab-1", PeerId("alice"))
    state.bind("tab-2", PeerId("alice"))

    assert state.sessions_for(PeerId("alice")) == {"tab-1", "tab-2"}
    assert state.sessions.identities_of("tab-1") == {"alice"}


def test_sessions_for_unknown_identity_is_empty() -> None:
    state: SignalingState[str] = SignalingState()

    assert state.sessions_for(PeerId("nobody")) == set()


def test_close_session_unbinds_every_identity() -> None:
    state: SignalingState[str] = SignalingState()
    state.open_session("s1")
    state.open_session("s2")
    state.bind("s1", PeerId("alice"))
    state.bind("s1", PeerId("bob"))
    state.bind("s2", PeerId("bob"))

    state.close_session("s1")

    assert "s1" not in state.sessions
    assert state.sessions_for(PeerId("alice")) == set()
    assert state.sessions_for(PeerId("bob")) == {"s2"}


def test_close_session_is_idempotent() -> None:
    state: SignalingState[str] = SignalingState()
    state.open_session("s1")
    state.open_session("s2")
    state.bind("s1", PeerId("alice"))
    state.bind("s2", PeerId("bob"))

    state.close_session("s1")
    state.close_session("s1")

    assert state.sessions_for(PeerId("bob")) == {"s2"}
    assert len(state.sessions) == 1


def test_bind_ignores_closed_session() -> None:
    state: SignalingState[str] = SignalingState()
    state.open_session("s1")
    state.close_session("s1")

    state.bind("s1", PeerId("alice"))

    assert state.sessions_for(PeerId("alice")) == set()


def test_public_iteration_follows_open_order() -> None:
    state: SignalingState[str] = SignalingState()
    for name in ("c", "a", "b"):
        state.open_session(name)

    assert state.all_sessions() == ["c", "a", "b"]
