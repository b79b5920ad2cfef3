"""Dictionary repository for normalization."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import import_module
from importlib.resources import files


class DictionaryRepository:
    """Loads the brewery table and default beer styles from packaged data."""

    def __init__(self, version: str = "v1"):
        self.version = version
        self.breweries: list[tuple[str, str]] = self._load_breweries()
        self.beer_types: list[str] = self._load_beer_types()

    def _load_breweries(self) -> list[tuple[str, str]]:
        try:
            module = import_module(f"tap_lens.normalization.data.{self.version}.breweries")
            data = module.BREWERIES
        except ModuleNotFoundError:
            path = files("tap_lens.normalization.data").joinpath(self.version, "breweries.json")
            data = json.loads(path.read_text(encoding="utf-8"))
        return [(str(key).strip().lower(), str(brewery)) for key, brewery in data]

    def _load_beer_types(self) -> list[str]:
        try:
            module = import_module(f"tap_lens.normalization.data.{self.version}.beer_types")
            data = module.BEER_TYPES
        except ModuleNotFoundError:
            path = files("tap_lens.normalization.data").joinpath(self.version, "beer_types.json")
            data = json.loads(path.read_text(encoding="utf-8"))
        return [str(item) for item in data]


@lru_cache(maxsize=4)
def get_repository(version: str = "v1") -> DictionaryRepository:
    """Return the shared read-only repository for ``version``."""
    return DictionaryRepository(version=version)
