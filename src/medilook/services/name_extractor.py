"""
Candidate medicine names from prescription text.

Only lines carrying a prescription cue ("Rx", "prescribed", ...) are
considered. The words after the cue are taken as the name until a dosage
or frequency marker ("500mg", "tablet", "bid", ...) ends it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from medilook.constants import (
    ADMIN_NOISE_WORDS,
    DOSAGE_STOP_MARKERS,
    GENERIC_CANDIDATE_WORDS,
    MIN_CANDIDATE_LENGTH,
    PRESCRIPTION_INDICATORS,
)

logger = logging.getLogger(__name__)


def join_ocr_text(regions: Iterable[str]) -> str:
    """Join recognised OCR text regions in the order received."""
    return " ".join(regions)


def _is_indicator(word: str) -> bool:
    return any(indicator in word for indicator in PRESCRIPTION_INDICATORS)


def _ends_name(word: str) -> bool:
    return any(ch.isdigit() for ch in word) or any(
        marker in word for marker in DOSAGE_STOP_MARKERS
    )


def _is_noise(word: str) -> bool:
    return any(noise in word for noise in ADMIN_NOISE_WORDS)


def _name_from_line(line: str) -> str | None:
    """Extract the name following the first prescription cue on a line."""
    capturing = False
    words: list[str] = []

    for word in line.split():
        lowered = word.lower()
        if _is_indicator(lowered):
            capturing = True
            continue
        if not capturing:
            continue
        if _ends_name(lowered):
            break
        if not _is_noise(lowered):
            words.append(word)

    name = " ".join(words).strip()
    if len(name) < MIN_CANDIDATE_LENGTH:
        return None
    return name


def extract_medicine_names(raw_text: str) -> set[str]:
    """Return candidate medicine names found in OCR text.

    Candidates are de-duplicated case-insensitively; the first spelling seen
    is kept.
    """
    names: set[str] = set()
    seen: set[str] = set()

    for line in raw_text.splitlines():
        if not _is_indicator(line.lower()):
            continue
        name = _name_from_line(line)
        if name is None or name.lower() in seen:
            continue
        seen.add(name.lower())
        names.add(name)

    logger.debug("Extracted %d candidate name(s): %s", len(names), sorted(names))
    return names


def searchable_candidates(names: Iterable[str]) -> list[str]:
    """Drop candidates too short or too generic to be worth a lookup."""
    return sorted(
        name
        for name in names
        if len(name) >= MIN_CANDIDATE_LENGTH
        and name.lower() not in GENERIC_CANDIDATE_WORDS
    )
