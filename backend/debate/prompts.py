"""Prompt templates for debate turns."""

from __future__ import annotations

from typing import List, Sequence

from .personas import Persona, get_profile, other_display_names

TURN_PROMPT = """You are {name} in a heated debate. The original question was: "{topic}"

Current conversation so far:
{history}

The last message was: "{last_line}"

You are {name} - {personality}.

RULES:
{rules}

{closing}"""

FORMATTING_RULES = (
    "NO quotation marks around your reply",
    "No meta-commentary about the debate or about being an AI",
    "No stage directions, no actions in brackets or asterisks",
    "Do not start with your own name",
)


def _rules_for(persona: Persona, topic: str, roster: Sequence[Persona] | None) -> List[str]:
    voice = get_profile(persona).voice
    others = ", ".join(other_display_names(persona, roster))
    rules = [
        "Respond directly to what was just said",
        f"Reference the previous speaker by name ({others}) and never address anyone else",
        voice.stance_rule,
        f"Keep under {voice.word_limit} words",
        f'Stay focused on the original question: "{topic}"',
    ]
    rules.extend(voice.extra_rules)
    rules.extend(FORMATTING_RULES)
    return rules


def build_prompt(
    persona: Persona,
    topic: str,
    history: Sequence[str],
    last_line: str,
    roster: Sequence[Persona] | None = None,
) -> str:
    """Render the exact instruction text for one turn.

    Pure: the same arguments always produce the same text.
    """
    profile = get_profile(persona)
    rules = _rules_for(profile.persona, topic, roster)
    return TURN_PROMPT.format(
        name=profile.persona.value,
        topic=topic,
        history="\n".join(history),
        last_line=last_line,
        personality=profile.voice.personality,
        rules="\n".join(f"{idx}. {rule}" for idx, rule in enumerate(rules, 1)),
        closing=profile.voice.closing,
    )
