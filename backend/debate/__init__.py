"""Four-persona debate engine.

Rotates turns between hosted LLM personas, keeps the per-session transcript,
and paces delivery to a live viewer.
"""

from .backends import BackendAdapter, build_adapters, credential_status
from .engine import DialogueEngine, TurnOutcome
from .errors import (
    BackendError,
    ConfigurationError,
    DebateError,
    SessionNotFoundError,
    SessionStoppedError,
    UnknownPersonaError,
)
from .pacing import DebateRunner
from .personas import DEFAULT_ROTATION, PERSONAS, SEED_PERSONA, Persona
from .prompts import build_prompt
from .rate_limiter import ProviderRateLimiter
from .sanitizer import sanitize_response
from .service import DebateService
from .state import Session, SessionStatus, Turn
from .store import InMemorySessionStore, SessionStore

__all__ = [
    "BackendAdapter",
    "BackendError",
    "ConfigurationError",
    "DEFAULT_ROTATION",
    "DebateError",
    "DebateRunner",
    "DebateService",
    "DialogueEngine",
    "InMemorySessionStore",
    "PERSONAS",
    "Persona",
    "ProviderRateLimiter",
    "SEED_PERSONA",
    "Session",
    "SessionNotFoundError",
    "SessionStatus",
    "SessionStoppedError",
    "SessionStore",
    "Turn",
    "TurnOutcome",
    "UnknownPersonaError",
    "build_adapters",
    "build_prompt",
    "credential_status",
    "sanitize_response",
]
