"""Live delivery of a debate to one viewer.

``DebateRunner`` turns the engine's one-turn-at-a-time contract into a paced
stream of events.  Each cycle waits the fixed inter-turn delay, asks the
engine for one step, emits the line, and after a successful turn waits for the
viewer's "presentation complete" acknowledgement before going on.

Stop and disconnect set the session to stopped and wake every pending wait,
including an in-flight backend call, whose result is then discarded.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from .engine import DialogueEngine, TurnOutcome
from .errors import SessionStoppedError
from .state import Session, SessionStatus, Turn

logger = logging.getLogger(__name__)

DEFAULT_TURN_DELAY = 2.0

Event = Dict[str, Any]
Emit = Callable[[Event], Awaitable[None]]


def message_event(session: Session, text: str, persona: str, should_persist: bool = True) -> Event:
    return {
        "type": "message",
        "session_id": session.session_id,
        "text": text,
        "persona": persona,
        "should_persist": should_persist,
        "turn_count": session.turn_index,
    }


def seed_event(session: Session) -> Event:
    seed: Turn = session.turns[0]
    return message_event(session, seed.render(), seed.speaker.tag)


def outcome_event(session: Session, outcome: TurnOutcome) -> Event:
    persona = outcome.persona.tag if outcome.ok else "error"
    return message_event(session, outcome.text, persona)


def session_ended_event(session: Session) -> Event:
    return {
        "type": "session_ended",
        "session_id": session.session_id,
        "status": session.status.value,
        "reason": session.stop_reason,
        "turn_count": session.turn_index,
    }


class DebateRunner:
    """Paced, cancellable run of one session."""

    def __init__(
        self,
        engine: DialogueEngine,
        session: Session,
        emit: Emit,
        turn_delay: float = DEFAULT_TURN_DELAY,
        ack_timeout: Optional[float] = None,
    ) -> None:
        self.engine = engine
        self.session = session
        self._emit = emit
        self.turn_delay = turn_delay
        self.ack_timeout = ack_timeout
        self._ack = asyncio.Event()
        self._stopped = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def acknowledge(self) -> None:
        """The viewer finished presenting the last line."""
        self._ack.set()

    def stop(self, reason: str = "stopped") -> None:
        if self.session.stop(reason):
            logger.info(f"Session {self.session.session_id} - stop requested ({reason})")
        self._stopped.set()

    async def _pause(self, seconds: float) -> bool:
        """Sleep unless stopped first; True means keep going."""
        if seconds <= 0:
            return not self.stopped
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return True
        return False

    async def _race_stop(self, awaitable: Awaitable[Any], timeout: Optional[float] = None):
        """Run *awaitable* until it finishes, the run is stopped, or *timeout* passes.

        Returns ``(finished, result)``; the awaitable is cancelled when it did not finish.
        """
        task = asyncio.ensure_future(awaitable)
        stop_waiter = asyncio.ensure_future(self._stopped.wait())
        try:
            done, _ = await asyncio.wait(
                {task, stop_waiter},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            stop_waiter.cancel()
        if task in done:
            return True, task.result()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as exc:  # result is discarded either way
            logger.debug(f"Session {self.session.session_id} - cancelled call ended with {exc!r}")
        return False, None

    async def _wait_for_ack(self) -> bool:
        finished, _ = await self._race_stop(self._ack.wait(), timeout=self.ack_timeout)
        if finished:
            return True
        if not self.stopped:
            logger.warning(
                f"Session {self.session.session_id} - no presentation ack within {self.ack_timeout}s"
            )
            self.stop("acknowledgement timeout")
        return False

    async def run(self) -> SessionStatus:
        """Drive the session until stopped or out of budget; always emits ``session_ended``."""
        session = self.session
        try:
            session.start()
        except SessionStoppedError:
            await self._emit(session_ended_event(session))
            return session.status

        try:
            while not self.stopped:
                if not self.engine.has_budget(session):
                    break
                if not await self._pause(self.turn_delay):
                    break

                finished, outcome = await self._race_stop(self.engine.step(session))
                if not finished or not session.running:
                    break

                self._ack.clear()
                await self._emit(outcome_event(session, outcome))

                if outcome.ok and not await self._wait_for_ack():
                    break
        except SessionStoppedError:
            logger.info(f"Session {session.session_id} - run ended: {session.status.value}")
        except asyncio.CancelledError:
            self.stop("cancelled")
            raise
        finally:
            if session.running:
                self.stop("run ended")
            logger.info(
                f"Session {session.session_id} - {session.status.value} after {session.turn_index} turns"
            )
            await self._emit(session_ended_event(session))
        return session.status
