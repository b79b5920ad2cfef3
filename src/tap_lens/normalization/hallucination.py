"""Batch-level detection of fabricated extraction results."""

from __future__ import annotations

import logging
import re

from tap_lens.schema import CandidateBeer, lower_confidence

logger = logging.getLogger(__name__)

MIN_ABV_SAMPLE = 3
COMMON_ABV_VALUES = frozenset({4.2, 5.0, 5.5, 6.0, 6.5, 7.0})
COMMON_ABV_RATIO = 0.8
GENERIC_NAME_RATIO = 0.5

GENERIC_NAME_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"^house\s+\w+$",
        r"^tap\s*#?\s*\d+$",
        r"^draft\s*#?\s*\d+$",
        r"^beer\s*#?\s*\d+$",
        r"^\w+\s+special$",
        r"^local\s+\w+$",
        r"^(seasonal|rotating)\s+\w+$",
        r"^craft\s+\w+$",
    )
]

# Brewery terms the vision model tends to invent for tap lists it cannot read.
FOREIGN_BREWERY_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"brouwerij",
        r"zwevegem",
        r"alvinne",
        r"picobrouw",
        r"brasserie",
        r"cervecer[ií]a",
    )
]

# "beer company" is not listed: it is part of real names like Boston Beer Company.
GENERIC_BREWERY_PATTERN = re.compile(
    r"\b(?:unknown brewery|local brewery|house brewery|tap house)\b", re.IGNORECASE
)


def _abvs(batch: list[CandidateBeer]) -> list[float]:
    return [beer.abv for beer in batch if beer.abv is not None]


def _uniform_abv(batch: list[CandidateBeer]) -> bool:
    values = _abvs(batch)
    return len(values) >= MIN_ABV_SAMPLE and len(set(values)) == 1


def _common_abv(batch: list[CandidateBeer]) -> bool:
    values = _abvs(batch)
    if len(values) < MIN_ABV_SAMPLE:
        return False
    common = sum(1 for value in values if round(value, 1) in COMMON_ABV_VALUES)
    return common / len(values) > COMMON_ABV_RATIO


def is_generic_pattern_name(name: str) -> bool:
    text = name.strip()
    return any(pattern.match(text) for pattern in GENERIC_NAME_PATTERNS)


def _generic_names(batch: list[CandidateBeer]) -> bool:
    if not batch:
        return False
    generic = sum(1 for beer in batch if is_generic_pattern_name(beer.name))
    return generic / len(batch) > GENERIC_NAME_RATIO


def _foreign_brewery(batch: list[CandidateBeer]) -> bool:
    return any(
        beer.brewery and any(pattern.search(beer.brewery) for pattern in FOREIGN_BREWERY_PATTERNS)
        for beer in batch
    )


def _generic_brewery(batch: list[CandidateBeer]) -> bool:
    return any(beer.brewery and GENERIC_BREWERY_PATTERN.search(beer.brewery) for beer in batch)


HEURISTICS = [
    ("uniform_abv", _uniform_abv),
    ("common_abv", _common_abv),
    ("generic_names", _generic_names),
    ("foreign_brewery", _foreign_brewery),
    ("generic_brewery", _generic_brewery),
]


def detect_hallucination(batch: list[CandidateBeer]) -> list[str]:
    """Return the names of every heuristic the batch triggers."""
    return [name for name, check in HEURISTICS if check(batch)]


def filter_hallucinations(batch: list[CandidateBeer]) -> list[CandidateBeer]:
    """Strip secondary fields from every record when the batch looks fabricated.

    Names, ABVs and types are kept. Brewery, price and size are cleared and
    confidence is capped at ``medium``. Batches that trigger nothing are
    returned as-is.
    """
    reasons = detect_hallucination(batch)
    if not reasons:
        return batch

    logger.warning("suspected hallucination in %d records: %s", len(batch), ", ".join(reasons))
    return [
        beer.model_copy(
            update={
                "brewery": None,
                "price": None,
                "size": None,
                "confidence": lower_confidence(beer.confidence, "medium"),
            }
        )
        for beer in batch
    ]
