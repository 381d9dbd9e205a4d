"""Tests for turn rotation, failure handling and stop semantics of the engine."""

import asyncio

import pytest

from debate.engine import DialogueEngine
from debate.errors import BackendError, ConfigurationError, SessionStoppedError, UnknownPersonaError
from debate.personas import DEFAULT_ROTATION, Persona
from debate.state import Session, SessionStatus, Turn


def _session(topic="Cats vs dogs", rotation=DEFAULT_ROTATION):
    return Session.seeded("s1", topic, rotation)


class GatedBackend:
    """Blocks inside generate() until the test opens the gate."""

    provider = "claude"

    def __init__(self, reply="Gated reply"):
        self.reply = reply
        self.entered = asyncio.Event()
        self.gate = asyncio.Event()

    async def generate(self, prompt):
        self.entered.set()
        await self.gate.wait()
        return self.reply


class TestRotation:
    @pytest.mark.asyncio
    async def test_cats_vs_dogs_four_turns(self, scripted_adapters):
        engine = DialogueEngine(scripted_adapters())
        session = _session()

        for _ in range(4):
            await engine.advance_turn(session)

        speakers = [turn.speaker for turn in session.turns]
        assert speakers == [Persona.GROK, Persona.CLAUDE, Persona.CHATGPT, Persona.DEEPSEEK, Persona.GROK]
        assert session.lines()[0] == "GROK: Cats vs dogs"
        assert session.lines()[1] == "CLAUDE: claude says point 1"
        assert session.turn_index == 4

    @pytest.mark.asyncio
    async def test_speaker_follows_rotation_formula(self, scripted_adapters):
        engine = DialogueEngine(scripted_adapters())
        session = _session()

        for _ in range(9):
            await engine.advance_turn(session)

        for index, turn in enumerate(session.turns[1:], start=1):
            assert turn.speaker is DEFAULT_ROTATION[(index - 1) % len(DEFAULT_ROTATION)]

    @pytest.mark.asyncio
    async def test_custom_rotation(self, scripted_adapters):
        engine = DialogueEngine(scripted_adapters())
        session = _session(rotation=(Persona.DEEPSEEK, Persona.CLAUDE))

        for _ in range(3):
            await engine.advance_turn(session)

        assert [t.speaker for t in session.turns[1:]] == [Persona.DEEPSEEK, Persona.CLAUDE, Persona.DEEPSEEK]

    @pytest.mark.asyncio
    async def test_session_is_running_after_first_turn(self, scripted_adapters):
        engine = DialogueEngine(scripted_adapters())
        session = _session()
        assert session.status is SessionStatus.IDLE

        await engine.advance_turn(session)

        assert session.status is SessionStatus.RUNNING


class TestPrompting:
    @pytest.mark.asyncio
    async def test_prompt_uses_history_window(self, scripted_adapters):
        adapters = scripted_adapters()
        engine = DialogueEngine(adapters, history_window=2)
        session = _session()

        for _ in range(3):
            await engine.advance_turn(session)

        prompt = adapters[Persona.DEEPSEEK].prompts[-1]
        assert "CLAUDE: claude says point 1\nCHATGPT: chatgpt says point 1" in prompt
        assert "GROK: Cats vs dogs" not in prompt
        assert 'The original question was: "Cats vs dogs"' in prompt
        assert 'The last message was: "CHATGPT: chatgpt says point 1"' in prompt

    def test_context_window_keeps_last_lines_in_order(self, scripted_adapters):
        engine = DialogueEngine(scripted_adapters(), history_window=2)
        session = _session()
        assert engine.context_window(session) == ["GROK: Cats vs dogs"]

        session.append_turn(Turn(Persona.CLAUDE, "a"))
        session.append_turn(Turn(Persona.CHATGPT, "b"))

        assert engine.context_window(session) == ["CLAUDE: a", "CHATGPT: b"]

    @pytest.mark.asyncio
    async def test_reply_is_sanitized_before_append(self, scripted_adapters):
        engine = DialogueEngine(scripted_adapters(CLAUDE=["CLAUDE: As an AI, I disagree"]))
        session = _session()

        turn = await engine.advance_turn(session)

        assert turn.text == "I disagree"
        assert session.lines()[-1] == "CLAUDE: I disagree"

    def test_invalid_settings_rejected(self, scripted_adapters):
        with pytest.raises(ValueError):
            DialogueEngine(scripted_adapters(), history_window=0)
        with pytest.raises(ValueError):
            DialogueEngine(scripted_adapters(), max_turns=0)


class TestFailures:
    @pytest.mark.asyncio
    async def test_failed_turn_is_skipped_and_rotation_advances(self, scripted_adapters):
        adapters = scripted_adapters(CLAUDE=[BackendError("claude", "HTTP 500: boom")])
        engine = DialogueEngine(adapters)
        session = _session()

        outcome = await engine.step(session)

        assert not outcome.ok
        assert outcome.persona is Persona.CLAUDE
        assert outcome.text == "[Error getting response from CLAUDE: claude: HTTP 500: boom]"
        assert session.lines() == ["GROK: Cats vs dogs"]
        assert session.turn_index == 0

        outcome = await engine.step(session)

        assert outcome.ok
        assert outcome.persona is Persona.CHATGPT
        assert session.lines()[-1] == "CHATGPT: chatgpt says point 1"
        assert session.turn_index == 1

    @pytest.mark.asyncio
    async def test_missing_credential_is_an_error_outcome(self, scripted_adapters):
        adapters = scripted_adapters(CLAUDE=[ConfigurationError("Set CLAUDE_API_KEY")])
        engine = DialogueEngine(adapters)
        session = _session()

        outcome = await engine.step(session)

        assert isinstance(outcome.error, ConfigurationError)
        assert len(session.turns) == 1

    @pytest.mark.asyncio
    async def test_advance_turn_raises_and_appends_nothing(self, scripted_adapters):
        engine = DialogueEngine(scripted_adapters(CLAUDE=[BackendError("claude", "timeout")]))
        session = _session()

        with pytest.raises(BackendError):
            await engine.advance_turn(session)

        assert len(session.turns) == 1

    @pytest.mark.asyncio
    async def test_empty_reply_after_cleanup_fails_the_turn(self, scripted_adapters):
        engine = DialogueEngine(scripted_adapters(CLAUDE=["CLAUDE:  "]))
        session = _session()

        outcome = await engine.step(session)

        assert not outcome.ok
        assert "empty response" in outcome.text
        assert len(session.turns) == 1

    @pytest.mark.asyncio
    async def test_rotation_without_adapter_is_unknown_persona(self, scripted_adapters):
        adapters = scripted_adapters()
        adapters.pop(Persona.GROK)
        engine = DialogueEngine(adapters)
        session = _session(rotation=(Persona.GROK,))

        with pytest.raises(UnknownPersonaError):
            await engine.advance_turn(session)
        with pytest.raises(UnknownPersonaError):
            engine.validate_rotation((Persona.CLAUDE, Persona.GROK))


class TestStopAndBudget:
    @pytest.mark.asyncio
    async def test_stopped_session_refuses_turns(self, scripted_adapters):
        engine = DialogueEngine(scripted_adapters())
        session = _session()
        session.stop()

        with pytest.raises(SessionStoppedError):
            await engine.advance_turn(session)

    @pytest.mark.asyncio
    async def test_reply_arriving_after_stop_is_discarded(self, scripted_adapters):
        adapters = scripted_adapters()
        gated = GatedBackend()
        adapters[Persona.CLAUDE] = gated
        engine = DialogueEngine(adapters)
        session = _session()

        task = asyncio.create_task(engine.advance_turn(session))
        await gated.entered.wait()
        session.stop("stopped by viewer")
        gated.gate.set()

        with pytest.raises(SessionStoppedError):
            await task
        assert session.lines() == ["GROK: Cats vs dogs"]
        assert session.status is SessionStatus.STOPPED

    @pytest.mark.asyncio
    async def test_budget_counts_attempts(self, scripted_adapters):
        adapters = scripted_adapters(CLAUDE=[BackendError("claude", "down")])
        engine = DialogueEngine(adapters, max_turns=2)
        session = _session()

        first = await engine.step(session)
        second = await engine.step(session)

        assert not first.ok and second.ok
        with pytest.raises(SessionStoppedError):
            await engine.step(session)
        assert session.status is SessionStatus.EXHAUSTED
        assert session.stop_reason == "turn budget reached"
        assert len(session.turns) == 2
