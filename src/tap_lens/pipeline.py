"""Menu photo processing pipeline."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass

from tap_lens.enrichment import Enricher
from tap_lens.exceptions import TapLensError
from tap_lens.menu_parser import parse_menu_text
from tap_lens.normalization.beer_types import BeerTypeVocabulary
from tap_lens.normalization.hallucination import detect_hallucination, filter_hallucinations
from tap_lens.providers.base import BaseProvider, ImageInput
from tap_lens.schema import BarContext, CandidateBeer, MenuScanResult

logger = logging.getLogger(__name__)

NO_BEERS_MESSAGE = "Could not find beer information in this photo. Try a clearer photo of the menu."


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _safe_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class PipelineConfig:
    provider: str = "gemini"
    vision_model: str | None = None
    enrichment_enabled: bool = True
    search_timeout_sec: float = 5.0
    dictionary_version: str = "v1"

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        return cls(
            provider=(os.getenv("TAP_LENS_PROVIDER", "gemini").strip().lower() or "gemini"),
            vision_model=os.getenv("TAP_LENS_VISION_MODEL") or None,
            enrichment_enabled=_parse_bool(os.getenv("TAP_LENS_ENRICHMENT_ENABLED"), True),
            search_timeout_sec=max(0.5, _safe_float(os.getenv("TAP_LENS_SEARCH_TIMEOUT_SEC"), 5.0)),
            dictionary_version=os.getenv("DICTIONARY_VERSION", "v1"),
        )


class MenuPipeline:
    """Extraction, hallucination screening and enrichment for one scan.

    The pipeline owns the beer-type vocabulary shared by its provider and
    enricher. Nothing raised by a stage escapes :meth:`process`; failures
    show up as fewer or lower-confidence candidates.
    """

    def __init__(
        self,
        provider: BaseProvider | None,
        *,
        enricher: Enricher | None = None,
        vocabulary: BeerTypeVocabulary | None = None,
        bar_directory=None,
    ):
        self.provider = provider
        if vocabulary is None:
            vocabulary = provider.vocabulary if provider is not None else BeerTypeVocabulary()
        self.vocabulary = vocabulary
        self.enricher = enricher or Enricher(vocabulary=self.vocabulary)
        self.bar_directory = bar_directory

    def get_extraction_metadata(self) -> dict[str, str]:
        if self.provider is None:
            return {"provider": "menu_text", "parser": "menu_regex"}
        return self.provider.get_extraction_metadata() or {}

    async def process(
        self,
        image: ImageInput,
        *,
        bar: BarContext | None = None,
        bar_id: str | None = None,
        attribute_to_house: bool | None = None,
    ) -> MenuScanResult:
        """Turn a menu photo into reviewable candidates.

        Args:
            image: Menu photo.
            bar: Bar context, if the caller already has it.
            bar_id: Bar to look up through the bar directory when ``bar`` is None.
            attribute_to_house: Attribute every beer to the bar's own brewery.
                None follows the bar's ``is_brewery`` flag.
        """
        if self.provider is None:
            raise TapLensError("No extraction provider configured for image scans.")

        bar = bar or await self._resolve_bar(bar_id)
        single_brewery = bool(attribute_to_house) and bar is not None
        try:
            candidates = await asyncio.to_thread(
                self.provider.extract, image, single_brewery=single_brewery
            )
        except Exception:
            logger.exception("menu extraction failed")
            candidates = []
        return await self._finish(candidates, bar, attribute_to_house)

    async def process_text(
        self,
        menu_text: str,
        *,
        bar: BarContext | None = None,
        bar_id: str | None = None,
        attribute_to_house: bool | None = None,
    ) -> MenuScanResult:
        """Run already-OCR'd menu text through the regex parser path."""
        bar = bar or await self._resolve_bar(bar_id)
        try:
            candidates = await asyncio.to_thread(parse_menu_text, menu_text, vocabulary=self.vocabulary)
        except Exception:
            logger.exception("menu text parsing failed")
            candidates = []
        return await self._finish(candidates, bar, attribute_to_house, provider="menu_text")

    async def _resolve_bar(self, bar_id: str | None) -> BarContext | None:
        if not bar_id or self.bar_directory is None:
            return None
        try:
            return await asyncio.to_thread(self.bar_directory.get_bar, bar_id)
        except Exception:
            logger.exception("bar lookup failed for %s", bar_id)
            return None

    async def _finish(
        self,
        candidates: list[CandidateBeer],
        bar: BarContext | None,
        attribute_to_house: bool | None,
        provider: str | None = None,
    ) -> MenuScanResult:
        reasons = detect_hallucination(candidates)
        screened = filter_hallucinations(candidates) if reasons else candidates
        enriched = await self.enricher.enrich_all(screened, bar, attribute_to_house)

        if not enriched:
            logger.info("no beers survived filtering")
        return MenuScanResult(
            candidates=enriched,
            provider=provider or (self.provider.name if self.provider else "menu_text"),
            hallucination_suspected=bool(reasons),
            message=None if enriched else NO_BEERS_MESSAGE,
        )
