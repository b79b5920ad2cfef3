"""House attribution and web-search enrichment for candidate beers."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib import parse, request

from tap_lens.exceptions import AuthenticationError
from tap_lens.normalization.beer_types import BeerTypeVocabulary, classify_beer_type, match_beer_type
from tap_lens.normalization.validators import is_plausible, validate_abv, validate_size
from tap_lens.schema import BarContext, BeerSearchResult, CandidateBeer

logger = logging.getLogger(__name__)

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"

_ABV_PATTERNS = [
    re.compile(r"(\d{1,2}(?:\.\d+)?)\s*%\s*(?:abv|alc)", re.IGNORECASE),
    re.compile(r"\babv\W{0,3}(\d{1,2}(?:\.\d+)?)\s*%", re.IGNORECASE),
]
_SIZE_PATTERN = re.compile(r"\b(\d{1,2})\s*(?:fl\.?\s*)?oz\b", re.IGNORECASE)


class BaseSearchClient(ABC):
    """Blocking lookup of published details for one beer."""

    @abstractmethod
    def lookup(self, name: str, brewery: str | None) -> BeerSearchResult | None:
        """Return what the web knows about the beer, or None.

        May raise on transport failures; callers go through :func:`search_beer`.
        """
        pass


class BraveSearchClient(BaseSearchClient):
    """Brave web search, mining result snippets for ABV, size and style."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        timeout_sec: float = 5.0,
        result_count: int = 5,
        vocabulary: BeerTypeVocabulary | None = None,
    ):
        self.api_key = api_key or os.environ.get("BRAVE_SEARCH_API_KEY")
        if not self.api_key:
            raise AuthenticationError(
                "No search API key provided. Set BRAVE_SEARCH_API_KEY environment variable "
                "or pass api_key parameter."
            )
        self.timeout_sec = timeout_sec
        self.result_count = result_count
        self.vocabulary = vocabulary

    def lookup(self, name: str, brewery: str | None) -> BeerSearchResult | None:
        query = " ".join(part for part in (f'"{name}"', brewery, "beer abv") if part)
        url = f"{BRAVE_SEARCH_URL}?{parse.urlencode({'q': query, 'count': self.result_count})}"
        req = request.Request(
            url,
            headers={"Accept": "application/json", "X-Subscription-Token": self.api_key},
            method="GET",
        )
        with request.urlopen(req, timeout=self.timeout_sec) as resp:
            body = json.loads(resp.read().decode("utf-8"))

        results = (body.get("web") or {}).get("results") or []
        snippets = [f"{item.get('title', '')} {item.get('description', '')}" for item in results]
        return parse_search_snippets(name, snippets, vocabulary=self.vocabulary)


def parse_search_snippets(
    name: str,
    snippets: list[str],
    *,
    vocabulary: BeerTypeVocabulary | None = None,
) -> BeerSearchResult | None:
    """Pull ABV, size and style out of search result text.

    Snippets that mention the beer by name are read first; an ABV found
    only in unrelated snippets is reported with medium confidence. Size and
    style are taken from named snippets only.
    """
    lowered_name = name.lower()
    ordered = sorted(snippets, key=lambda text: lowered_name not in text.lower())

    abv: float | None = None
    size: int | None = None
    style: str | None = None
    named_hit = False
    for text in ordered:
        mentions_name = lowered_name in text.lower()
        if abv is None:
            for pattern in _ABV_PATTERNS:
                match = pattern.search(text)
                if match and validate_abv(match.group(1)) is not None:
                    abv = validate_abv(match.group(1))
                    named_hit = named_hit or mentions_name
                    break
        if size is None and mentions_name:
            match = _SIZE_PATTERN.search(text)
            if match:
                size = validate_size(match.group(1))
        if style is None and mentions_name:
            style = match_beer_type(text, vocabulary=vocabulary)

    if abv is None and size is None and style is None:
        return None
    return BeerSearchResult(
        abv=abv,
        size=size,
        type=style,
        confidence="high" if named_hit else "medium",
    )


@dataclass(frozen=True)
class SearchOutcome:
    """A lookup result or an explicit failure marker."""

    result: BeerSearchResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def search_beer(client: BaseSearchClient, name: str, brewery: str | None) -> SearchOutcome:
    """Run a blocking lookup off the event loop and capture any failure."""
    try:
        result = await asyncio.to_thread(client.lookup, name, brewery)
    except Exception as exc:
        logger.warning("web search failed for %r: %s", name, exc)
        return SearchOutcome(error=str(exc) or type(exc).__name__)
    return SearchOutcome(result=result)


class Enricher:
    """Fills in brewery attribution and missing details for candidates."""

    def __init__(
        self,
        search_client: BaseSearchClient | None = None,
        *,
        vocabulary: BeerTypeVocabulary | None = None,
    ):
        self.search_client = search_client
        self.vocabulary = vocabulary or BeerTypeVocabulary()

    async def enrich(
        self,
        beer: CandidateBeer,
        bar: BarContext | None = None,
        attribute_to_house: bool | None = None,
    ) -> CandidateBeer:
        """Enrich one candidate; on any failure the input is returned untouched.

        ``attribute_to_house`` left as None follows ``bar.is_brewery``.
        """
        try:
            await self.load_vocabulary()
            return await self._enrich(beer, bar, attribute_to_house)
        except Exception:
            logger.exception("enrichment failed for %r", beer.name)
            return beer

    async def load_vocabulary(self) -> None:
        """Fill the vocabulary off the event loop; its loader may do network I/O."""
        await asyncio.to_thread(lambda: self.vocabulary.terms)

    async def enrich_all(
        self,
        beers: list[CandidateBeer],
        bar: BarContext | None = None,
        attribute_to_house: bool | None = None,
    ) -> list[CandidateBeer]:
        """Enrich candidates concurrently, keep their order, drop implausible ones."""
        try:
            await self.load_vocabulary()
        except Exception:
            logger.exception("beer type vocabulary failed to load")
        enriched = await asyncio.gather(
            *(self.enrich(beer, bar, attribute_to_house) for beer in beers)
        )
        return [beer for beer in enriched if is_plausible(beer)]

    async def _enrich(
        self,
        beer: CandidateBeer,
        bar: BarContext | None,
        attribute_to_house: bool | None,
    ) -> CandidateBeer:
        house = attribute_to_house if attribute_to_house is not None else bool(bar and bar.is_brewery)

        if house and bar is not None:
            beer = beer.model_copy(
                update={
                    "brewery": bar.name,
                    "description": f"House beer at {bar.name}",
                    "confidence": "high",
                    "raw_text": f"{beer.raw_text} | house beer",
                }
            )
        elif bar is not None and not beer.description:
            beer = beer.model_copy(update={"description": f"Beer available at {bar.name}"})

        search_type: str | None = None
        if beer.brewery and (beer.abv is None or beer.size is None) and self.search_client is not None:
            outcome = await search_beer(self.search_client, beer.name, beer.brewery)
            if outcome.ok and outcome.result is not None:
                beer, search_type = self._apply_search(beer, outcome.result)

        if self.vocabulary.resolve(beer.type) is None:
            beer = beer.model_copy(
                update={
                    "type": classify_beer_type(
                        beer.name,
                        beer.brewery,
                        search_type,
                        vocabulary=self.vocabulary,
                        fallback="Pale Ale",
                    )
                }
            )
        return beer

    def _apply_search(
        self, beer: CandidateBeer, result: BeerSearchResult
    ) -> tuple[CandidateBeer, str | None]:
        updates: dict[str, object] = {}
        abv = validate_abv(result.abv)
        if beer.abv is None and abv is not None:
            updates["abv"] = abv
        size = validate_size(result.size)
        if beer.size is None and size is not None:
            updates["size"] = size
        if not beer.description and result.description:
            updates["description"] = result.description.strip()

        if result.has_usable_field():
            filled = [field for field in ("abv", "size") if field in updates]
            logger.info("web search filled %s for %r", ", ".join(filled) or "nothing new", beer.name)
            updates["confidence"] = "high"
            updates["raw_text"] = f"{beer.raw_text} | web search"
        if not updates:
            return beer, result.type
        return beer.model_copy(update=updates), result.type
