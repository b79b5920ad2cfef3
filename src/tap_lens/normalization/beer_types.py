"""Rule-based beer style classification."""

from __future__ import annotations

import logging
import re
import threading
from typing import Callable, Iterable

from tap_lens.normalization.repository import get_repository

logger = logging.getLogger(__name__)

Predicate = Callable[[str], bool]
VocabularyLoader = Callable[[], Iterable[str]]


def _has(pattern: str) -> Predicate:
    regex = re.compile(pattern)
    return lambda text: regex.search(text) is not None


def _has_all(*patterns: str) -> Predicate:
    regexes = [re.compile(pattern) for pattern in patterns]
    return lambda text: all(regex.search(text) for regex in regexes)


_IPA = r"\bipa\b|india pale ale"

# Evaluated top to bottom, first match wins. Combinations and named beers
# must stay above the generic keyword they contain.
TYPE_RULES: list[tuple[Predicate, str]] = [
    (_has(r"\bguinness\b"), "Irish Stout"),
    (_has_all(r"\b(hazy|juicy|new england)\b", _IPA), "Hazy IPA"),
    (_has(r"\bneipa\b"), "Hazy IPA"),
    (_has_all(r"\bsession\b", _IPA), "Session IPA"),
    (_has(r"\b(double|imperial|triple) ipa\b|\bdipa\b"), "Double IPA"),
    (_has(_IPA), "IPA"),
    (_has(r"\bpale ale\b"), "Pale Ale"),
    (_has(r"\bcider\b"), "Cider"),
    (_has(r"\bseltzer\b"), "Seltzer"),
    (_has(r"\bstout\b"), "Stout"),
    (_has(r"\bporter\b"), "Porter"),
    (_has(r"\bgose\b"), "Gose"),
    (_has(r"\b(sour|tart|berliner)\b"), "Sour"),
    (_has(r"\bhefe(weizen)?\b"), "Hefeweizen"),
    (_has(r"\b(witbier|wit|blanche)\b"), "Witbier"),
    (_has(r"\b(wheat|weizen|weiss)\b"), "Wheat Beer"),
    (_has(r"\bk(o|ö)lsch\b"), "Kolsch"),
    (_has(r"\b(pilsner|pilsener|pils)\b"), "Pilsner"),
    (_has(r"\b(light|lite)\b"), "Lite"),
    (_has(r"\blager\b"), "Lager"),
    (_has(r"\b(doppel)?bock\b"), "Bock"),
    (_has(r"\b(saison|farmhouse)\b"), "Saison"),
    (_has(r"\btripel\b"), "Tripel"),
    (_has(r"\b(belgian|dubbel|abbey)\b"), "Belgian"),
    (_has(r"\bbarley ?wine\b"), "Barleywine"),
    (_has(r"\bamber\b"), "Amber Ale"),
    (_has(r"\bred ale\b|\birish red\b"), "Red Ale"),
    (_has(r"\bbrown ale\b|\bnut brown\b"), "Brown Ale"),
    (_has(r"\b(golden|blonde?)\b"), "Golden Ale"),
    (_has(r"\bfruit\b"), "Fruit Beer"),
]


class BeerTypeVocabulary:
    """Canonical beer styles, filled lazily on first use.

    ``loader`` is called at most once until :meth:`reload` is invoked. When the
    loader is missing, raises, or yields nothing, the packaged defaults are
    used instead. Concurrent first access is serialized by a lock.
    """

    def __init__(
        self,
        loader: VocabularyLoader | None = None,
        *,
        defaults: Iterable[str] | None = None,
        dictionary_version: str = "v1",
    ):
        self._loader = loader
        self._defaults = (
            list(defaults) if defaults is not None else list(get_repository(dictionary_version).beer_types)
        )
        self._terms: list[str] | None = None
        self._index: dict[str, str] = {}
        self._lock = threading.Lock()

    @property
    def terms(self) -> list[str]:
        self._ensure_loaded()
        return list(self._terms or [])

    def reload(self) -> list[str]:
        with self._lock:
            self._fill(self._load())
        return self.terms

    def resolve(self, value: str | None) -> str | None:
        """Return the canonical spelling of ``value`` or None if unknown."""
        if not value or not isinstance(value, str):
            return None
        self._ensure_loaded()
        return self._index.get(value.strip().lower())

    def _ensure_loaded(self) -> None:
        if self._terms is None:
            with self._lock:
                if self._terms is None:
                    self._fill(self._load())

    def _load(self) -> list[str]:
        if self._loader is None:
            return _dedupe(self._defaults)
        try:
            loaded = _dedupe(self._loader())
        except Exception:
            logger.warning("beer type loader failed, using default vocabulary", exc_info=True)
            return _dedupe(self._defaults)
        if not loaded:
            logger.info("beer type loader returned nothing, using default vocabulary")
            return _dedupe(self._defaults)
        return loaded

    def _fill(self, terms: list[str]) -> None:
        self._index = {term.lower(): term for term in terms}
        self._terms = terms


def _dedupe(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        text = value.strip()
        if not text or text.lower() in seen:
            continue
        seen.add(text.lower())
        result.append(text)
    return result


_DEFAULT_VOCABULARY = BeerTypeVocabulary()


def match_beer_type(text: str | None, *, vocabulary: BeerTypeVocabulary | None = None) -> str | None:
    """Return the style of the first rule matching ``text``, or None."""
    if not text or not text.strip():
        return None
    vocab = vocabulary or _DEFAULT_VOCABULARY
    lowered = text.lower()
    for predicate, style in TYPE_RULES:
        if not predicate(lowered):
            continue
        resolved = vocab.resolve(style)
        if resolved:
            return resolved
    return None


def classify_beer_type(
    name: str | None,
    brewery: str | None = None,
    declared: str | None = None,
    *,
    vocabulary: BeerTypeVocabulary | None = None,
    fallback: str = "Ale",
) -> str:
    """Map free text to exactly one canonical beer style.

    Args:
        name: Beer name as extracted.
        brewery: Brewery name, if known.
        declared: Style reported by the extraction step, if any.
        vocabulary: Active style vocabulary. Defaults to the packaged list.
        fallback: Style returned when no rule matches.

    Returns:
        A style string drawn from the vocabulary; never empty.
    """
    vocab = vocabulary or _DEFAULT_VOCABULARY

    canonical = vocab.resolve(declared)
    if canonical:
        return canonical

    text = " ".join(part for part in (name, brewery, declared) if isinstance(part, str))
    matched = match_beer_type(text, vocabulary=vocab)
    if matched:
        return matched

    for candidate in (fallback, "Ale"):
        resolved = vocab.resolve(candidate)
        if resolved:
            return resolved
    terms = vocab.terms
    return terms[0] if terms else fallback
