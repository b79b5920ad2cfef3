"""Normalization dictionary v1."""

from tap_lens.normalization.data.v1.beer_types import BEER_TYPES
from tap_lens.normalization.data.v1.breweries import BREWERIES

__all__ = ["BEER_TYPES", "BREWERIES"]
