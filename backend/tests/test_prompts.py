"""Tests for the persona table and prompt rendering."""

import pytest

from debate.errors import UnknownPersonaError
from debate.personas import (
    DEFAULT_ROTATION,
    PERSONAS,
    SEED_PERSONA,
    Persona,
    parse_persona,
    parse_rotation,
)
from debate.prompts import build_prompt
from provider_clients import ProviderName

HISTORY = ["GROK: Cats vs dogs", "CLAUDE: Grok, both have merits."]


class TestPersonaTable:
    def test_every_persona_has_a_profile(self):
        assert set(PERSONAS) == set(Persona)

    def test_provider_binding(self):
        assert PERSONAS[Persona.GROK].provider is ProviderName.GROK
        assert PERSONAS[Persona.CLAUDE].provider is ProviderName.CLAUDE
        assert PERSONAS[Persona.CHATGPT].provider is ProviderName.OPENAI
        assert PERSONAS[Persona.DEEPSEEK].provider is ProviderName.DEEPSEEK

    def test_default_order(self):
        assert SEED_PERSONA is Persona.GROK
        assert DEFAULT_ROTATION == (Persona.CLAUDE, Persona.CHATGPT, Persona.DEEPSEEK, Persona.GROK)

    def test_parse_persona_any_case(self):
        assert parse_persona("chatgpt") is Persona.CHATGPT
        assert parse_persona(" DeepSeek ") is Persona.DEEPSEEK

    @pytest.mark.parametrize("value", ["GEMINI", "", None, 3])
    def test_parse_persona_rejects_unknown(self, value):
        with pytest.raises(UnknownPersonaError):
            parse_persona(value)

    def test_parse_rotation(self):
        assert parse_rotation(None) == DEFAULT_ROTATION
        assert parse_rotation(["grok", "claude"]) == (Persona.GROK, Persona.CLAUDE)
        with pytest.raises(UnknownPersonaError):
            parse_rotation(["grok", "bard"])
        with pytest.raises(ValueError):
            parse_rotation([])


class TestBuildPrompt:
    def test_is_deterministic(self):
        first = build_prompt(Persona.CLAUDE, "Cats vs dogs", HISTORY, HISTORY[-1])
        second = build_prompt(Persona.CLAUDE, "Cats vs dogs", HISTORY, HISTORY[-1])
        assert first == second

    def test_contains_topic_history_and_last_line(self):
        prompt = build_prompt(Persona.DEEPSEEK, "Cats vs dogs", HISTORY, HISTORY[-1])

        assert 'The original question was: "Cats vs dogs"' in prompt
        assert "GROK: Cats vs dogs\nCLAUDE: Grok, both have merits." in prompt
        assert 'The last message was: "CLAUDE: Grok, both have merits."' in prompt
        assert "You are DEEPSEEK" in prompt

    def test_word_ceiling_and_formatting_rules(self):
        prompt = build_prompt(Persona.GROK, "Tabs or spaces", HISTORY, HISTORY[-1])

        assert "Keep under 25 words" in prompt
        assert "NO quotation marks" in prompt
        assert "No stage directions" in prompt
        assert "No meta-commentary" in prompt
        assert "No asterisks" in prompt

    def test_names_only_the_other_personas(self):
        prompt = build_prompt(Persona.CLAUDE, "Cats vs dogs", HISTORY, HISTORY[-1])
        assert "(Grok, ChatGPT, DeepSeek)" in prompt

    def test_roster_limits_addressable_names(self):
        prompt = build_prompt(
            Persona.CLAUDE, "Cats vs dogs", HISTORY, HISTORY[-1], roster=[Persona.CLAUDE, Persona.GROK]
        )
        assert "(Grok)" in prompt

    def test_chatgpt_opposes_previous_speaker(self):
        prompt = build_prompt(Persona.CHATGPT, "Cats vs dogs", HISTORY, HISTORY[-1])
        assert "OPPOSE what the last speaker said" in prompt

    def test_personas_get_distinct_voices(self):
        prompts = {p: build_prompt(p, "Cats vs dogs", HISTORY, HISTORY[-1]) for p in Persona}
        assert len(set(prompts.values())) == len(Persona)
