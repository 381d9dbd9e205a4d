"""Session storage for debates.

Sessions live in process memory only; a restart forgets them.  A client that
still holds its transcript can resume through ``resolve()``.
"""

import asyncio
import logging
import uuid
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from .errors import SessionNotFoundError
from .personas import DEFAULT_ROTATION, SEED_PERSONA, Persona
from .state import Session, Turn

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Storage interface for debate sessions."""

    async def create(
        self,
        topic: str,
        rotation: Sequence[Persona] = DEFAULT_ROTATION,
    ) -> Session:
        """Create a session seeded with *topic*."""
        ...

    async def get(self, session_id: str) -> Session:
        """Return the session.

        Raises:
            SessionNotFoundError: If no session has that id
        """
        ...

    async def resolve(
        self,
        session_id: str,
        history: Optional[Sequence[str]] = None,
        rotation: Sequence[Persona] = DEFAULT_ROTATION,
    ) -> Session:
        """Return the stored session, or rebuild it from client-held history."""
        ...

    async def delete(self, session_id: str) -> bool:
        ...


def _new_session_id() -> str:
    return uuid.uuid4().hex


class InMemorySessionStore:
    """Dict-backed session store shared by every request in the process."""

    def __init__(self, id_factory: Callable[[], str] = _new_session_id):
        self._sessions: Dict[str, Session] = {}
        self._lock = asyncio.Lock()
        self._id_factory = id_factory

    def __len__(self) -> int:
        return len(self._sessions)

    async def create(
        self,
        topic: str,
        rotation: Sequence[Persona] = DEFAULT_ROTATION,
    ) -> Session:
        async with self._lock:
            session_id = self._id_factory()
            while session_id in self._sessions:
                session_id = self._id_factory()
            session = Session.seeded(session_id, topic, rotation)
            self._sessions[session_id] = session
        logger.info(f"Session {session_id} created with topic: {session.topic}")
        return session

    async def get(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def resolve(
        self,
        session_id: str,
        history: Optional[Sequence[str]] = None,
        rotation: Sequence[Persona] = DEFAULT_ROTATION,
    ) -> Session:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                return session
            if not history:
                raise SessionNotFoundError(session_id)
            session = rebuild_session(session_id, history, rotation)
            self._sessions[session_id] = session
        logger.info(
            f"Session {session_id} restored from client history ({len(session.turns)} lines)"
        )
        return session

    async def delete(self, session_id: str) -> bool:
        async with self._lock:
            return self._sessions.pop(session_id, None) is not None

    async def list_ids(self) -> List[str]:
        return list(self._sessions)


def rebuild_session(
    session_id: str,
    history: Sequence[str],
    rotation: Sequence[Persona] = DEFAULT_ROTATION,
) -> Session:
    """Recreate a session from rendered transcript lines.

    The first line is the seed; a missing persona prefix on it is tolerated.
    Later lines must name a known persona.  The rotation cursor is placed on
    the persona after the last speaker.
    """
    lines = [line for line in history if line and line.strip()]
    if not lines:
        raise ValueError("History must contain at least the seed line")

    first = lines[0]
    try:
        seed = Turn.parse(first)
    except ValueError:
        seed = Turn(SEED_PERSONA, first.strip())
    turns = [Turn(SEED_PERSONA, seed.text)]
    turns.extend(Turn.parse(line) for line in lines[1:])

    session = Session.seeded(session_id, turns[0].text, rotation)
    session.turns = turns
    session.turn_index = len(turns) - 1
    session.slot = _slot_after(turns[-1].speaker, session.turn_index, session.rotation)
    return session


def _slot_after(last_speaker: Persona, turn_index: int, rotation: Sequence[Persona]) -> int:
    if turn_index == 0 or last_speaker not in rotation:
        return turn_index
    target = (rotation.index(last_speaker) + 1) % len(rotation)
    return turn_index + (target - turn_index) % len(rotation)
