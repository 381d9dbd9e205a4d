"""Transcript and session state for a debate.

A session moves through ``idle -> running -> (stopped | exhausted)``; the two
last states are terminal.  The transcript is append-only and its first entry
is always the seed line supplied by the user.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import SessionStoppedError
from .personas import DEFAULT_ROTATION, SEED_PERSONA, Persona, parse_persona

_LINE_RE = re.compile(r"^\s*([A-Za-z]+):\s?(.*)$", re.DOTALL)


class SessionStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class Turn:
    """One persona's sanitized contribution."""

    speaker: Persona
    text: str

    def render(self) -> str:
        return f"{self.speaker.value}: {self.text}"

    @classmethod
    def parse(cls, line: str) -> "Turn":
        """Read back a rendered ``"<PERSONA>: <text>"`` line."""
        match = _LINE_RE.match(line)
        if not match:
            raise ValueError(f"Transcript line has no persona prefix: {line!r}")
        return cls(speaker=parse_persona(match.group(1)), text=match.group(2).strip())

    def to_dict(self) -> Dict[str, str]:
        return {"speaker": self.speaker.value, "text": self.text}


@dataclass
class Session:
    session_id: str
    rotation: Tuple[Persona, ...] = DEFAULT_ROTATION
    turns: List[Turn] = field(default_factory=list)
    turn_index: int = 0  # generated turns appended; the seed is not counted
    slot: int = 0  # rotation cursor, also advanced by skipped turns
    status: SessionStatus = SessionStatus.IDLE
    stop_reason: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @classmethod
    def seeded(
        cls,
        session_id: str,
        topic: str,
        rotation: Sequence[Persona] = DEFAULT_ROTATION,
    ) -> "Session":
        topic = topic.strip()
        if not topic:
            raise ValueError("Topic is required")
        return cls(
            session_id=session_id,
            rotation=tuple(rotation),
            turns=[Turn(SEED_PERSONA, topic)],
        )

    @property
    def topic(self) -> str:
        return self.turns[0].text if self.turns else ""

    @property
    def running(self) -> bool:
        return self.status is SessionStatus.RUNNING

    @property
    def is_terminal(self) -> bool:
        return self.status in (SessionStatus.STOPPED, SessionStatus.EXHAUSTED)

    def lines(self) -> List[str]:
        return [turn.render() for turn in self.turns]

    def start(self) -> None:
        if self.is_terminal:
            raise SessionStoppedError(f"Session {self.session_id} is {self.status.value}")
        self.status = SessionStatus.RUNNING

    def stop(self, reason: str = "stopped") -> bool:
        """Mark the session stopped; returns False if it had already ended."""
        if self.is_terminal:
            return False
        self.status = SessionStatus.STOPPED
        self.stop_reason = reason
        return True

    def exhaust(self) -> None:
        if not self.is_terminal:
            self.status = SessionStatus.EXHAUSTED
            self.stop_reason = "turn budget reached"

    def append_turn(self, turn: Turn) -> None:
        # Called by the dialogue engine only.
        self.turns.append(turn)
        self.turn_index += 1
        self.slot += 1

    def skip_slot(self) -> None:
        self.slot += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "status": self.status.value,
            "stop_reason": self.stop_reason,
            "turn_count": self.turn_index,
            "rotation": [p.value for p in self.rotation],
            "transcript": self.lines(),
            "created_at": self.created_at.isoformat(),
        }
