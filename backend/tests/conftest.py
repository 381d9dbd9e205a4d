import os
import sys
from pathlib import Path

import pytest


# Ensure backend modules (e.g. main.py, debate/) are importable even when running pytest from repo root.
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

# Keep the default app fast and offline during import-time initialization.
os.environ.setdefault("DEBATE_TURN_DELAY_SECONDS", "0")
os.environ.setdefault("PROVIDER_MIN_INTERVAL_SECONDS", "0")

from debate.personas import Persona  # noqa: E402


class ScriptedBackend:
    """Stands in for a provider adapter; replays scripted replies or errors."""

    def __init__(self, provider, replies=None):
        self.provider = provider
        self.replies = list(replies or [])
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else f"{self.provider} says point {len(self.prompts)}"
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def scripted_adapters():
    """Factory: ``scripted_adapters(CLAUDE=[...], ...)`` -> persona -> ScriptedBackend."""

    def _make(**replies):
        return {
            persona: ScriptedBackend(persona.value.lower(), replies.get(persona.value))
            for persona in Persona
        }

    return _make
