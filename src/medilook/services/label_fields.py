"""
Short, UI-ready fields derived from verbose label sections.

Two functions:
  1. extract_dosage: one instructional sentence from dosage_and_administration
  2. extract_side_effects: up to four adverse reaction fragments
"""

from __future__ import annotations

import re

from medilook.constants import (
    CONSULT_PROVIDER,
    CONSULT_PROVIDER_DOSAGE,
    CONSULT_PROVIDER_SIDE_EFFECTS,
    DOSAGE_FREQUENCY_CUES,
    DOSAGE_INSTRUCTION_VERBS,
    DOSAGE_UNIT_WORDS,
    MAX_DOSAGE_SENTENCE_LENGTH,
    MAX_SIDE_EFFECTS,
    SIDE_EFFECT_EXCLUDED_PREFIXES,
    SIDE_EFFECT_EXCLUSIONS,
    SIDE_EFFECT_KEYWORDS,
    SIMPLE_DOSAGE_PATTERNS,
)

_FRAGMENT_SEPARATORS = re.compile(r"[.,;]")


def _contains_any(text: str, needles: tuple[str, ...]) -> bool:
    return any(needle in text for needle in needles)


def _collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def _split_sentences(text: str) -> list[str]:
    return [s.strip() for s in text.split(".") if s.strip()]


def extract_dosage(text: str | None) -> str:
    """Pick the most useful dosage sentence from a dosage section.

    Three full passes over the sentences, in priority order:
      1. a known simple instruction ("take one tablet", "mg every", ...)
         that also names a frequency,
      2. an instruction ("take"/"recommended") mentioning a unit,
      3. any sentence mentioning a unit.
    Passes 2 and 3 only accept sentences shorter than 100 characters.
    """
    if text is None:
        return CONSULT_PROVIDER

    sentences = _split_sentences(text)

    for sentence in sentences:
        lowered = sentence.lower()
        if _contains_any(lowered, SIMPLE_DOSAGE_PATTERNS) and _contains_any(
            lowered, DOSAGE_FREQUENCY_CUES
        ):
            return sentence + "."

    for sentence in sentences:
        lowered = sentence.lower()
        if _contains_any(lowered, DOSAGE_INSTRUCTION_VERBS) and _contains_any(
            lowered, DOSAGE_UNIT_WORDS
        ):
            cleaned = _collapse_whitespace(sentence)
            if len(cleaned) < MAX_DOSAGE_SENTENCE_LENGTH:
                return cleaned + "."

    for sentence in sentences:
        if _contains_any(sentence.lower(), DOSAGE_UNIT_WORDS):
            cleaned = _collapse_whitespace(sentence)
            if len(cleaned) < MAX_DOSAGE_SENTENCE_LENGTH:
                return cleaned + "."

    return CONSULT_PROVIDER_DOSAGE


def _is_relevant_side_effect(fragment: str) -> bool:
    lowered = fragment.lower()
    return (
        _contains_any(lowered, SIDE_EFFECT_KEYWORDS)
        and not _contains_any(lowered, SIDE_EFFECT_EXCLUSIONS)
        and not lowered.startswith(SIDE_EFFECT_EXCLUDED_PREFIXES)
    )


def _capitalize_first(text: str) -> str:
    """Upper-case the first character only; the rest is left as written."""
    if text[0].isupper():
        return text
    return text[0].upper() + text[1:]


def extract_side_effects(text: str | None) -> list[str]:
    """Return up to four short side-effect fragments from an adverse reactions section."""
    if text is None:
        return [CONSULT_PROVIDER_SIDE_EFFECTS]

    fragments = [f.strip() for f in _FRAGMENT_SEPARATORS.split(text) if f.strip()]
    relevant = [f for f in fragments if _is_relevant_side_effect(f)]

    effects = [_capitalize_first(f) for f in relevant[:MAX_SIDE_EFFECTS]]
    return effects or [CONSULT_PROVIDER_SIDE_EFFECTS]
