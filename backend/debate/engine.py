"""Turn-rotation dialogue engine.

Owns the per-turn pipeline: pick the next speaker from the rotation, build the
windowed prompt, call that persona's backend, sanitize the reply and append it
to the transcript.

Turn convention: the seed line is transcript index 0 and is not counted in
``turn_index``.  The next speaker is ``rotation[slot % len(rotation)]`` where
``slot`` advances on every attempt, so with no failures generated turn ``i``
(transcript index ``i``) is spoken by ``rotation[(i - 1) % len(rotation)]``.

Failure policy is skip-and-advance: a failed attempt appends nothing, leaves
``turn_index`` alone and consumes its rotation slot, so the next attempt goes
to the next persona.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Union

from .backends import TextBackend
from .errors import BackendError, ConfigurationError, SessionStoppedError, UnknownPersonaError
from .personas import Persona
from .prompts import build_prompt
from .sanitizer import sanitize_response
from .state import Session, Turn

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_WINDOW = 6
DEFAULT_MAX_TURNS = 100

TurnFailure = Union[BackendError, ConfigurationError]


@dataclass(frozen=True)
class TurnOutcome:
    """Result of one scheduled slot: either a Turn or a visible failure."""

    persona: Persona
    turn: Optional[Turn] = None
    error: Optional[TurnFailure] = None

    @property
    def ok(self) -> bool:
        return self.turn is not None

    @property
    def text(self) -> str:
        if self.turn is not None:
            return self.turn.render()
        return f"[Error getting response from {self.persona.value}: {self.error}]"


class DialogueEngine:
    """Drives one session at a time, one turn per call."""

    def __init__(
        self,
        adapters: Mapping[Persona, TextBackend],
        history_window: int = DEFAULT_HISTORY_WINDOW,
        max_turns: int = DEFAULT_MAX_TURNS,
    ) -> None:
        if history_window < 1:
            raise ValueError("history_window must be at least 1")
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.adapters = dict(adapters)
        self.history_window = history_window
        self.max_turns = max_turns

    def validate_rotation(self, rotation) -> None:
        for persona in rotation:
            if persona not in self.adapters:
                raise UnknownPersonaError(persona)

    def next_speaker(self, session: Session) -> Persona:
        if not session.rotation:
            raise ValueError(f"Session {session.session_id} has an empty rotation")
        return session.rotation[session.slot % len(session.rotation)]

    def context_window(self, session: Session) -> List[str]:
        return session.lines()[-self.history_window:]

    def has_budget(self, session: Session) -> bool:
        """False once the session may not schedule more turns; marks exhaustion."""
        if session.is_terminal:
            return False
        if session.slot >= self.max_turns:
            session.exhaust()
            logger.info(f"Session {session.session_id} - turn budget of {self.max_turns} reached")
            return False
        return True

    def _adapter_for(self, persona: Persona) -> TextBackend:
        try:
            return self.adapters[persona]
        except KeyError:
            raise UnknownPersonaError(persona) from None

    async def advance_turn(self, session: Session) -> Turn:
        """Produce and append the next turn.

        Raises:
            BackendError / ConfigurationError: the call failed; nothing appended
            SessionStoppedError: the session ended before or during the call
        """
        async with session.lock:
            return await self._advance(session)

    async def step(self, session: Session) -> TurnOutcome:
        """Run one slot, converting backend failures into a visible outcome.

        The failed slot is consumed so the next step addresses the next persona.
        """
        async with session.lock:
            persona = self.next_speaker(session)
            try:
                turn = await self._advance(session)
            except (BackendError, ConfigurationError) as exc:
                session.skip_slot()
                logger.warning(
                    f"Session {session.session_id} - Error getting response from {persona.value}: {exc}"
                )
                return TurnOutcome(persona=persona, error=exc)
            return TurnOutcome(persona=persona, turn=turn)

    async def _advance(self, session: Session) -> Turn:
        if not session.turns:
            raise ValueError(f"Session {session.session_id} has no seed line")
        if not self.has_budget(session):
            raise SessionStoppedError(f"Session {session.session_id} is {session.status.value}")
        session.start()

        persona = self.next_speaker(session)
        adapter = self._adapter_for(persona)
        history = self.context_window(session)
        prompt = build_prompt(
            persona,
            session.topic,
            history,
            history[-1],
            roster=session.rotation,
        )
        logger.info(
            f"Session {session.session_id} - Getting response from: {persona.value} "
            f"(turn {session.turn_index + 1}, slot {session.slot})"
        )

        raw = await adapter.generate(prompt)

        if not session.running:
            logger.info(
                f"Session {session.session_id} - discarding {persona.value} reply, session {session.status.value}"
            )
            raise SessionStoppedError(f"Session {session.session_id} is {session.status.value}")

        text = sanitize_response(raw, persona)
        if not text:
            raise BackendError(adapter.provider, "empty response after cleanup")

        turn = Turn(persona, text)
        session.append_turn(turn)
        logger.info(
            f"Session {session.session_id} - Added to dialogue: {turn.render()} "
            f"(length {len(session.turns)})"
        )
        return turn
