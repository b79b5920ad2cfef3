"""Brewery inference from beer names."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from tap_lens.normalization.repository import get_repository


class BreweryMap:
    """Read-only lookup from lowercase beer-name keys to brewery names.

    Insertion order matters: the substring scan returns the first key found
    in the name, so longer keys must precede the shorter keys they contain.
    """

    def __init__(self, entries: list[tuple[str, str]]):
        self._entries: Mapping[str, str] = MappingProxyType(dict(entries))

    @classmethod
    def default(cls, version: str = "v1") -> "BreweryMap":
        return cls(get_repository(version).breweries)

    def keys(self) -> list[str]:
        return list(self._entries)

    def infer(self, name: str | None) -> str | None:
        if not name or not isinstance(name, str):
            return None
        key = name.strip().lower()
        if not key:
            return None

        exact = self._entries.get(key)
        if exact:
            return exact

        for pattern, brewery in self._entries.items():
            if pattern in key:
                return brewery
        return None


_DEFAULT_MAP: BreweryMap | None = None


def infer_brewery(name: str | None) -> str | None:
    """Return the known brewery for a beer name, or None."""
    global _DEFAULT_MAP
    if _DEFAULT_MAP is None:
        _DEFAULT_MAP = BreweryMap.default()
    return _DEFAULT_MAP.infer(name)
