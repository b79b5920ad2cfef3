"""Regex parser for OCR'd menu text."""

from __future__ import annotations

import logging
import re

from tap_lens.normalization.beer_types import BeerTypeVocabulary, classify_beer_type
from tap_lens.normalization.breweries import infer_brewery
from tap_lens.normalization.validators import validate_abv, validate_name, validate_price
from tap_lens.schema import CandidateBeer, Confidence, downgrade

logger = logging.getLogger(__name__)

MIN_LINE_LENGTH = 15
SECTION_HEADERS = ("DRAFT BEERS", "BOTTLES", "ON TAP", "CANNED BEERS")
_SECTION_HEADER = re.compile(rf"\b(?:{'|'.join(SECTION_HEADERS)})\b")
NON_BEER_LINE = re.compile(r"\b(wine|cocktails?|appetizers?)\b", re.IGNORECASE)

# Where a description follows, the name is the run of capitalised tokens; tokens
# are at least two characters so a leading "A" of the description is not
# swallowed into the name.
_NAME = r"(?P<name>[A-Z0-9][A-Z0-9&'’.\-]+(?:\s+[A-Z0-9][A-Z0-9&'’.\-]+)*)"
# Without a description the ABV ends the name, so any casing is accepted.
_ANY_CASE_NAME = r"(?P<name>[A-Za-z0-9][\w&'’.\-]*(?:\s+[A-Za-z0-9][\w&'’.\-]*)*)"
_DESCRIPTION = r"(?P<description>.*?[a-z].*?)"
_ABV = r"(?P<abv>\d+(?:\.\d+)?)\s*%(?:\s*(?i:abv))?"
_REGION = r"(?P<region>[A-Za-z][A-Za-z .']*?)"
_PRICE = r"\$?(?P<price>\d+(?:\.\d{1,2})?)\s*\.?"

# Most specific first; the first pattern that matches wins.
MENU_LINE_PATTERNS: list[tuple[re.Pattern[str], Confidence]] = [
    # ALLAGASH CURIEUX An award winning golden ale ... 10.2% Maine 12.
    (re.compile(rf"^{_NAME}\s+{_DESCRIPTION}\s+{_ABV}\s+{_REGION}\s+{_PRICE}$"), "high"),
    # SMUTTYNOSE OLD BROWN DOG A hearty brown ale. 6.7% $8
    (re.compile(rf"^{_NAME}\s+{_DESCRIPTION}\s+{_ABV}\s+{_PRICE}$"), "medium"),
    # DOGFISH HEAD 60 MINUTE IPA 6.0% Delaware $9
    (re.compile(rf"^{_ANY_CASE_NAME}\s+{_ABV}\s+{_REGION}\s+{_PRICE}$"), "medium"),
    # BUD LIGHT 4.2% $6
    (re.compile(rf"^{_ANY_CASE_NAME}\s+{_ABV}\s+{_PRICE}$"), "low"),
]


def infer_size_from_abv(abv: float) -> int:
    """Conventional serving size in ounces; stronger beers come in smaller glasses."""
    if abv >= 10:
        return 8
    if abv >= 8:
        return 10
    if abv >= 6.5:
        return 12
    if abv >= 5.5:
        return 14
    return 16


def _is_skippable(line: str) -> bool:
    if len(line) < MIN_LINE_LENGTH:
        return True
    if _SECTION_HEADER.search(line):
        return True
    return NON_BEER_LINE.search(line) is not None


def parse_menu_line(
    line: str,
    *,
    vocabulary: BeerTypeVocabulary | None = None,
) -> CandidateBeer | None:
    """Parse one menu line, or return None if no pattern yields a beer."""
    text = line.strip()
    for pattern, confidence in MENU_LINE_PATTERNS:
        match = pattern.match(text)
        if not match:
            continue

        groups = match.groupdict()
        name = validate_name(groups["name"])
        if name is None:
            logger.debug("menu line matched but name was rejected: %r", text)
            return None

        description = (groups.get("description") or "").strip() or None
        region = (groups.get("region") or "").strip() or None
        abv = validate_abv(groups["abv"])
        price = validate_price(groups["price"])
        if abv is None:
            confidence = downgrade(confidence)
        if price is None:
            confidence = downgrade(confidence)

        return CandidateBeer(
            name=name,
            brewery=infer_brewery(name),
            abv=abv,
            price=price,
            size=infer_size_from_abv(abv) if abv is not None else None,
            type=classify_beer_type(
                f"{name} {description or ''}",
                vocabulary=vocabulary,
                fallback="Ale",
            ),
            description=description,
            region=region,
            confidence=confidence,
            raw_text=text,
        )
    return None


def parse_menu_text(
    menu_text: str,
    *,
    vocabulary: BeerTypeVocabulary | None = None,
) -> list[CandidateBeer]:
    """Turn raw multi-line menu text into candidate beers, in menu order."""
    beers: list[CandidateBeer] = []
    for raw_line in (menu_text or "").splitlines():
        line = raw_line.strip()
        if not line or _is_skippable(line):
            continue
        beer = parse_menu_line(line, vocabulary=vocabulary)
        if beer is None:
            logger.debug("no menu pattern matched line: %r", line)
            continue
        beers.append(beer)
    return beers
