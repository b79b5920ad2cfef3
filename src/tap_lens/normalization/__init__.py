"""Normalization utilities for tap-lens."""

from tap_lens.normalization.beer_types import BeerTypeVocabulary, classify_beer_type
from tap_lens.normalization.breweries import BreweryMap, infer_brewery
from tap_lens.normalization.hallucination import detect_hallucination, filter_hallucinations
from tap_lens.normalization.validators import (
    validate_abv,
    validate_brewery,
    validate_candidate,
    validate_name,
    validate_price,
    validate_size,
)

__all__ = [
    "BeerTypeVocabulary",
    "BreweryMap",
    "classify_beer_type",
    "detect_hallucination",
    "filter_hallucinations",
    "infer_brewery",
    "validate_abv",
    "validate_brewery",
    "validate_candidate",
    "validate_name",
    "validate_price",
    "validate_size",
]
