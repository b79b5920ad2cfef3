"""Field validators for extracted beer records.

Every validator returns the normalized value or None and never raises.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Mapping

from tap_lens.normalization.beer_types import BeerTypeVocabulary, classify_beer_type
from tap_lens.normalization.breweries import infer_brewery
from tap_lens.schema import CandidateBeer, Confidence, downgrade

logger = logging.getLogger(__name__)

ABV_MIN = 0.5
ABV_MAX = 20.0
PRICE_MIN = 1.0
PRICE_MAX = 50.0
SIZE_MIN = 4
SIZE_MAX = 64
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
BREWERY_MIN_LENGTH = 2
BREWERY_MAX_LENGTH = 50

PLACEHOLDER_BREWERIES = frozenset(
    {
        "unknown",
        "unknown brewery",
        "unknown brewer",
        "tap house",
        "taphouse",
        "brewing company",
        "brewing co",
        "brewery",
        "local brewery",
        "house brewery",
        "craft brewery",
        "beer company",
        "various",
        "none",
        "n/a",
        "na",
        "null",
        "on tap",
        "draft",
    }
)

GENERIC_NAMES = frozenset(
    {
        "beer",
        "beers",
        "tap",
        "taps",
        "draft",
        "drafts",
        "draught",
        "special",
        "specials",
        "drink",
        "drinks",
        "beverage",
        "beverages",
        "selection",
        "various",
        "bottle",
        "bottles",
        "can",
        "cans",
        "pint",
        "menu",
        "seasonal",
        "rotating",
        "tbd",
        "n/a",
        "unknown",
    }
)

# "pasta" alone is a legitimate beer name ("Pasta Shapes"), so only dishes are listed.
FOOD_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\bpizza\b",
        r"burgers?\b",
        r"\bwings?\b",
        r"\bfries\b",
        r"\bsandwich(es)?\b",
        r"\bsalad\b",
        r"\bsoup\b",
        r"\bnachos\b",
        r"\btacos?\b",
        r"\bquesadillas?\b",
        r"\bappetizers?\b",
        r"\bentrees?\b",
        r"\bpasta dish\b",
        r"\bmozzarella sticks\b",
        r"\bhot dogs?\b",
        r"\bchicken (tenders|strips|fingers)\b",
        r"\bdesserts?\b",
    )
]

_UNIT_SUFFIX = re.compile(r"\s*(?:%\s*(?:abv)?|abv|(?:fl\.?\s*)?oz\.?)$")


def _to_number(value: Any) -> float | None:
    """Read a number, allowing only a leading "$" and a %, ABV or oz unit."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().lower().replace(",", "")
        text = _UNIT_SUFFIX.sub("", text.removeprefix("$")).strip()
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def validate_abv(value: Any) -> float | None:
    number = _to_number(value)
    if number is None or not (ABV_MIN < number < ABV_MAX):
        return None
    return number


def validate_price(value: Any) -> float | None:
    number = _to_number(value)
    if number is None or not (PRICE_MIN <= number <= PRICE_MAX):
        return None
    return number


def validate_size(value: Any) -> int | None:
    number = _to_number(value)
    if number is None or not number.is_integer():
        return None
    size = int(number)
    if not (SIZE_MIN <= size <= SIZE_MAX):
        return None
    return size


def is_food_item(name: str) -> bool:
    return any(pattern.search(name) for pattern in FOOD_PATTERNS)


def is_generic_name(name: str) -> bool:
    return name.strip().lower() in GENERIC_NAMES


def validate_name(value: Any) -> str | None:
    """Return the cleaned beer name, or None if it cannot be a beer."""
    if not isinstance(value, str):
        return None
    name = re.sub(r"\s+", " ", value).strip()
    if not (NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH):
        return None
    if is_generic_name(name):
        return None
    if is_food_item(name):
        logger.debug("rejecting food item %r", name)
        return None
    return name


def is_placeholder_brewery(value: str) -> bool:
    return value.strip().lower() in PLACEHOLDER_BREWERIES


def validate_brewery(value: Any, name: str | None = None) -> str | None:
    """Return a plausible brewery, else the brewery inferred from ``name``."""
    if isinstance(value, str):
        brewery = re.sub(r"\s+", " ", value).strip()
        if (
            BREWERY_MIN_LENGTH <= len(brewery) <= BREWERY_MAX_LENGTH
            and not is_placeholder_brewery(brewery)
        ):
            return brewery
    return infer_brewery(name)


def is_plausible(beer: CandidateBeer) -> bool:
    """Final sanity check before candidates are shown for review."""
    if validate_name(beer.name) is None:
        return False
    if beer.abv is not None and validate_abv(beer.abv) is None:
        return False
    if beer.price is not None and validate_price(beer.price) is None:
        return False
    return True


def _present(value: Any) -> bool:
    return value is not None and not (isinstance(value, str) and not value.strip())


def validate_candidate(
    raw: Mapping[str, Any],
    *,
    vocabulary: BeerTypeVocabulary | None = None,
    fallback_type: str = "Pale Ale",
    raw_text: str | None = None,
) -> CandidateBeer | None:
    """Validate one raw extraction record into a CandidateBeer.

    The record is dropped when its name is rejected. Any other field that
    fails validation is nulled and costs one confidence step.
    """
    name = validate_name(raw.get("name"))
    if name is None:
        logger.info("dropping extracted record with rejected name: %r", raw.get("name"))
        return None

    confidence: Confidence = raw.get("confidence") if raw.get("confidence") in ("high", "medium", "low") else "high"

    fields: dict[str, Any] = {}
    for field, validator in (("abv", validate_abv), ("price", validate_price), ("size", validate_size)):
        value = raw.get(field)
        validated = validator(value) if _present(value) else None
        if _present(value) and validated is None:
            logger.debug("stripping %s=%r from %r", field, value, name)
            confidence = downgrade(confidence)
        fields[field] = validated

    raw_brewery = raw.get("brewery")
    brewery = validate_brewery(raw_brewery, name)
    if (
        isinstance(raw_brewery, str)
        and _present(raw_brewery)
        and not is_placeholder_brewery(raw_brewery)
        and brewery != re.sub(r"\s+", " ", raw_brewery).strip()
    ):
        confidence = downgrade(confidence)

    declared = raw.get("type") if isinstance(raw.get("type"), str) else None
    description = raw.get("description")
    description = description.strip() if isinstance(description, str) and description.strip() else None

    return CandidateBeer(
        name=name,
        brewery=brewery,
        abv=fields["abv"],
        price=fields["price"],
        size=fields["size"],
        type=classify_beer_type(name, brewery, declared, vocabulary=vocabulary, fallback=fallback_type),
        description=description,
        confidence=confidence,
        raw_text=raw_text if raw_text is not None else name,
    )
