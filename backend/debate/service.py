"""Debate service: the operations the HTTP and WebSocket layers call."""

import logging
from typing import Dict, Iterable, Optional, Sequence

from config import DebateSettings

from .engine import DialogueEngine, TurnOutcome
from .errors import SessionStoppedError
from .pacing import DebateRunner, Emit, seed_event
from .personas import DEFAULT_ROTATION, Persona, parse_rotation
from .store import InMemorySessionStore, SessionStore
from .state import Session

logger = logging.getLogger(__name__)


class DebateService:
    """Starts, continues and stops debate sessions.

    Holds the process-wide store and engine; one instance per application.
    """

    def __init__(
        self,
        engine: DialogueEngine,
        store: Optional[SessionStore] = None,
        settings: Optional[DebateSettings] = None,
    ):
        self.engine = engine
        self.store = store if store is not None else InMemorySessionStore()
        self.settings = settings or DebateSettings()
        self._runners: Dict[str, DebateRunner] = {}

    def _rotation(self, names: Optional[Iterable[str]]) -> Sequence[Persona]:
        rotation = parse_rotation(names)
        self.engine.validate_rotation(rotation)
        return rotation

    async def start_session(self, topic: str, rotation: Optional[Iterable[str]] = None) -> Session:
        """Create a session whose transcript holds only the seed line.

        Raises:
            ValueError: blank topic
            UnknownPersonaError: rotation names a persona outside the table
        """
        return await self.store.create(topic, self._rotation(rotation))

    async def get_session(self, session_id: str) -> Session:
        return await self.store.get(session_id)

    async def continue_session(
        self,
        session_id: str,
        history: Optional[Sequence[str]] = None,
        rotation: Optional[Iterable[str]] = None,
    ) -> tuple[Session, TurnOutcome]:
        """Run exactly one turn for a stored (or client-restored) session.

        A failed turn is returned as an outcome with ``error`` set; its rotation
        slot is consumed.

        Raises:
            SessionNotFoundError: unknown id and no history to restore from
            SessionStoppedError: the session is stopped or out of budget
        """
        session = await self.store.resolve(session_id, history, self._rotation(rotation))
        if session_id in self._runners:
            raise SessionStoppedError(f"Session {session_id} is being streamed live")
        outcome = await self.engine.step(session)
        return session, outcome

    async def stop_session(self, session_id: str, reason: str = "stopped") -> Session:
        session = await self.store.get(session_id)
        runner = self._runners.get(session_id)
        if runner is not None:
            runner.stop(reason)
        else:
            session.stop(reason)
        return session

    async def open_live(
        self,
        topic: str,
        emit: Emit,
        rotation: Optional[Iterable[str]] = None,
    ) -> DebateRunner:
        """Create a session, emit its seed line, and return a runner ready to ``run()``."""
        session = await self.start_session(topic, rotation)
        await emit(seed_event(session))
        runner = DebateRunner(
            self.engine,
            session,
            emit,
            turn_delay=self.settings.turn_delay_seconds,
            ack_timeout=self.settings.ack_timeout_seconds,
        )
        self._runners[session.session_id] = runner
        return runner

    async def run_live(self, runner: DebateRunner) -> None:
        try:
            await runner.run()
        finally:
            self._runners.pop(runner.session.session_id, None)

    def active_runs(self) -> int:
        return len(self._runners)


def default_rotation_names() -> list[str]:
    return [p.value for p in DEFAULT_ROTATION]
