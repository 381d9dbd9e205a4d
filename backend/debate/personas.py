"""Persona table: who debates, which provider answers for them, and how they talk.

Every persona-specific detail lives in ``PERSONAS``. Adding a persona means
adding one enum member and one table entry; nothing else switches on names.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Sequence, Tuple

from provider_clients import ProviderName

from .errors import UnknownPersonaError


class Persona(str, Enum):
    GROK = "GROK"
    CLAUDE = "CLAUDE"
    CHATGPT = "CHATGPT"
    DEEPSEEK = "DEEPSEEK"

    @property
    def tag(self) -> str:
        """Lowercase tag sent to viewers alongside each line."""
        return self.value.lower()


@dataclass(frozen=True)
class VoiceProfile:
    """Behavioral contract rendered into every prompt for one persona."""

    personality: str
    stance_rule: str
    closing: str
    word_limit: int = 25
    extra_rules: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PersonaProfile:
    persona: Persona
    display_name: str
    provider: ProviderName
    voice: VoiceProfile


PERSONAS: Dict[Persona, PersonaProfile] = {
    Persona.GROK: PersonaProfile(
        persona=Persona.GROK,
        display_name="Grok",
        provider=ProviderName.GROK,
        voice=VoiceProfile(
            personality="grumpy uncle who jokes everything off, provocative and irreverent",
            stance_rule="Be provocative but answer the core question",
            closing="Respond as GROK would - directly and with attitude!",
            extra_rules=("No asterisks",),
        ),
    ),
    Persona.CLAUDE: PersonaProfile(
        persona=Persona.CLAUDE,
        display_name="Claude",
        provider=ProviderName.CLAUDE,
        voice=VoiceProfile(
            personality="diplomatic but firm, the voice of reason",
            stance_rule="Present a counter-argument or support the previous point with reasoning",
            closing="Be diplomatic but take a clear stance!",
        ),
    ),
    Persona.CHATGPT: PersonaProfile(
        persona=Persona.CHATGPT,
        display_name="ChatGPT",
        provider=ProviderName.OPENAI,
        voice=VoiceProfile(
            personality="the instigator who loves drama and stirring the pot",
            stance_rule="OPPOSE what the last speaker said, be dramatic and push buttons",
            closing="Stir the pot and challenge the previous response!",
        ),
    ),
    Persona.DEEPSEEK: PersonaProfile(
        persona=Persona.DEEPSEEK,
        display_name="DeepSeek",
        provider=ProviderName.DEEPSEEK,
        voice=VoiceProfile(
            personality="analytical and data-driven, brings facts to arguments",
            stance_rule="Either support or contradict the previous speaker with data or logic",
            closing="Use your analytical nature to respond with facts or logic!",
        ),
    ),
}

SEED_PERSONA = Persona.GROK

# Speaking order after the seed line.
DEFAULT_ROTATION: Tuple[Persona, ...] = (
    Persona.CLAUDE,
    Persona.CHATGPT,
    Persona.DEEPSEEK,
    Persona.GROK,
)


def parse_persona(value: object) -> Persona:
    """Resolve a persona name (any case) or enum member; fail loudly otherwise."""
    if isinstance(value, Persona):
        return value
    if isinstance(value, str):
        try:
            return Persona(value.strip().upper())
        except ValueError:
            pass
    raise UnknownPersonaError(value)


def get_profile(persona: object) -> PersonaProfile:
    resolved = parse_persona(persona)
    try:
        return PERSONAS[resolved]
    except KeyError:
        raise UnknownPersonaError(resolved) from None


def parse_rotation(names: Iterable[object] | None) -> Tuple[Persona, ...]:
    """Validate a client-supplied speaking order, falling back to the default."""
    if names is None:
        return DEFAULT_ROTATION
    rotation = tuple(get_profile(name).persona for name in names)
    if not rotation:
        raise ValueError("Rotation must name at least one persona")
    return rotation


def other_display_names(persona: Persona, roster: Sequence[Persona] | None = None) -> List[str]:
    """Names this persona may address: everyone else in the roster."""
    members = roster if roster is not None else list(PERSONAS)
    return [PERSONAS[p].display_name for p in dict.fromkeys(members) if p is not persona]
