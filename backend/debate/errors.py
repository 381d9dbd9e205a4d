"""Error taxonomy for the debate engine."""

from config import ConfigurationError


class DebateError(Exception):
    """Base class for debate engine errors."""


class BackendError(DebateError):
    """A provider call failed (non-2xx, transport failure, or unreadable payload)."""

    def __init__(self, provider: str, cause: str):
        super().__init__(f"{provider}: {cause}")
        self.provider = provider
        self.cause = cause


class SessionNotFoundError(DebateError, LookupError):
    """No stored transcript for the session and no fallback history was supplied."""

    def __init__(self, session_id: str):
        super().__init__(f"No session found for id {session_id!r}")
        self.session_id = session_id


class UnknownPersonaError(DebateError, ValueError):
    """A rotation or request referenced a persona outside the configured set."""

    def __init__(self, name: object):
        super().__init__(f"Unknown persona: {name!r}")
        self.name = name


class SessionStoppedError(DebateError):
    """The session is no longer running; any pending result was discarded."""


__all__ = [
    "BackendError",
    "ConfigurationError",
    "DebateError",
    "SessionNotFoundError",
    "SessionStoppedError",
    "UnknownPersonaError",
]
