"""Cleanup of raw model replies before they enter a transcript."""

from __future__ import annotations

import re
from typing import List, Optional

from .errors import UnknownPersonaError
from .personas import PERSONAS, Persona, parse_persona

_DISCLAIMER_RE = re.compile(
    r"\b(?:as an ai(?: language model)?|i(?:'|’)m an ai|i am an ai)\b,?",
    re.IGNORECASE,
)
_SPACES_RE = re.compile(r"[ \t]{2,}")


def _prefix_variants(name: str) -> List[str]:
    return [f"{name}:", f"as {name}:", f"{name} here:"]


def _prefixes_for(persona: Optional[Persona]) -> List[str]:
    # Speaker's own name first, then any other persona it may be echoing.
    ordered = [persona] if persona is not None else []
    ordered += [p for p in PERSONAS if p is not persona]
    prefixes: List[str] = []
    for member in ordered:
        names = {member.value.lower(), PERSONAS[member].display_name.lower()}
        for name in sorted(names):
            prefixes.extend(_prefix_variants(name))
    return prefixes


def _clean_once(text: str, prefixes: List[str]) -> str:
    text = _DISCLAIMER_RE.sub("", text)
    text = _SPACES_RE.sub(" ", text).strip()
    lowered = text.lower()
    for prefix in prefixes:
        if lowered.startswith(prefix):
            return text[len(prefix):].strip()
    return text


def sanitize_response(raw: object, persona: object = None) -> str:
    """Strip persona-name echoes and AI disclaimers from a model reply.

    Never raises. Repeats until nothing changes, so the result is stable under
    a second pass (``sanitize_response(sanitize_response(x)) == sanitize_response(x)``).
    """
    if not isinstance(raw, str):
        return ""
    try:
        speaker = parse_persona(persona) if persona is not None else None
    except UnknownPersonaError:
        speaker = None
    prefixes = _prefixes_for(speaker)

    text = raw
    while True:
        cleaned = _clean_once(text, prefixes)
        if cleaned == text:
            return cleaned
        text = cleaned
