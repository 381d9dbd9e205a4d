"""Tests for reply sanitization."""

import pytest

from debate.personas import Persona
from debate.sanitizer import sanitize_response


class TestNamePrefixes:
    def test_strips_upper_case_name_prefix(self):
        assert sanitize_response("GROK: hi there", Persona.GROK) == "hi there"

    def test_strips_as_name_prefix_case_insensitively(self):
        assert sanitize_response("as claude: hi", Persona.CLAUDE) == "hi"

    @pytest.mark.parametrize(
        "raw",
        ["DEEPSEEK: numbers win", "deepseek: numbers win", "As DEEPSEEK: numbers win", "DeepSeek here: numbers win"],
    )
    def test_all_variants_for_speaker(self, raw):
        assert sanitize_response(raw, Persona.DEEPSEEK) == "numbers win"

    def test_strips_echo_of_another_persona(self):
        assert sanitize_response("ChatGPT: drama!", Persona.CLAUDE) == "drama!"

    def test_name_inside_text_is_kept(self):
        assert sanitize_response("Grok is wrong: cats rule", Persona.CLAUDE) == "Grok is wrong: cats rule"

    def test_repeated_echo_is_fully_removed(self):
        assert sanitize_response("GROK: GROK: fine", Persona.GROK) == "fine"


class TestDisclaimers:
    def test_removes_disclaimers_anywhere(self):
        raw = "Honestly, as an AI, I think dogs win. I'm an AI but I know loyalty."
        assert sanitize_response(raw, Persona.CHATGPT) == "Honestly, I think dogs win. but I know loyalty."

    def test_disclaimer_before_prefix(self):
        assert sanitize_response("As an AI CLAUDE: calm down", Persona.CLAUDE) == "calm down"


class TestRobustness:
    @pytest.mark.parametrize("raw", ["", "   ", None, 42])
    def test_empty_or_malformed_input(self, raw):
        assert sanitize_response(raw, Persona.GROK) == ""

    def test_unknown_persona_does_not_raise(self):
        assert sanitize_response("  GROK: ok  ", "NOBODY") == "ok"

    @pytest.mark.parametrize(
        "raw",
        [
            "GROK: hi there",
            "As an AI, as claude: hmm",
            "  DeepSeek here:   As an AI language model data says no ",
            "plain text",
            "CHATGPT:",
        ],
    )
    def test_idempotent(self, raw):
        once = sanitize_response(raw, Persona.CLAUDE)
        assert sanitize_response(once, Persona.CLAUDE) == once
