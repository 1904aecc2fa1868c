"""
Session and identity bookkeeping.

A session is whatever opaque, hashable handle the transport hands us.  The two
registries are kept mirror-consistent by :class:`SignalingState`; neither one
touches the other directly.
"""

from __future__ import annotations

from typing import Dict, Generic, Hashable, Iterator, Set, TypeVar

from .records import PeerId

SessionT = TypeVar("SessionT", bound=Hashable)


class SessionRegistry(Generic[SessionT]):
    """Live sessions and the identities each one currently represents."""

    def __init__(self) -> None:
        # dict keeps open order, which public broadcasts follow
        self._sessions: Dict[SessionT, Set[PeerId]] = {}

    def __contains__(self, session: object) -> bool:
        return session in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[SessionT]:
        return iter(list(self._sessions))

    def open(self, session: SessionT) -> None:
        self._sessions[session] = set()

    def close(self, session: SessionT) -> Set[PeerId]:
        """Forget ``session`` and return the identities it was bound to."""

        return self._sessions.pop(session, set())

    def identities_of(self, session: SessionT) -> Set[PeerId]:
        return set(self._sessions.get(session, ()))

    def add_identity(self, session: SessionT, identity: PeerId) -> None:
        identities = self._sessions.get(session)
        if identities is not None:
            identities.add(identity)

    def discard_identity(self, identity: PeerId) -> None:
        for identities in self._sessions.values():
            identities.discard(identity)


class IdentityRegistry(Generic[SessionT]):
    """Peer identity to the set of live sessions acting on its behalf."""

    def __init__(self) -> None:
        self._identities: Dict[PeerId, Set[SessionT]] = {}

    def __contains__(self, identity: object) -> bool:
        return identity in self._identities

    def __len__(self) -> int:
        return len(self._identities)

    def bind(self, session: SessionT, identity: PeerId) -> None:
        self._identities.setdefault(identity, set()).add(session)

    def unbind(self, session: SessionT, identity: PeerId) -> None:
        sessions = self._identities.get(identity)
        if sessions is None:
            return
        sessions.discard(session)
        if not sessions:
            del self._identities[identity]

    def remove(self, identity: PeerId) -> Set[SessionT]:
        return self._identities.pop(identity, set())

    def sessions_for(self, identity: PeerId) -> Set[SessionT]:
        return set(self._identities.get(identity, ()))

    def has_live_sessions(self, identity: PeerId) -> bool:
        return bool(self._identities.get(identity))


__all__ = ["IdentityRegistry", "SessionRegistry", "SessionT"]
