"""Core menu scanning functions."""

from __future__ import annotations

import asyncio
import logging
import os

from tap_lens.backend import SupabaseBackend
from tap_lens.enrichment import BaseSearchClient, BraveSearchClient, Enricher
from tap_lens.normalization.beer_types import BeerTypeVocabulary
from tap_lens.pipeline import MenuPipeline, PipelineConfig
from tap_lens.providers.base import BaseProvider, ImageInput
from tap_lens.schema import BarContext, MenuScanResult

logger = logging.getLogger(__name__)


def _build_gemini_provider(
    api_key: str | None,
    vocabulary: BeerTypeVocabulary | None = None,
    model: str | None = None,
) -> BaseProvider:
    from tap_lens.providers.gemini import GeminiProvider

    return GeminiProvider(api_key=api_key, model=model, vocabulary=vocabulary)


def _build_ocr_provider(vocabulary: BeerTypeVocabulary | None = None) -> BaseProvider:
    from tap_lens.providers.google_vision_ocr import GoogleVisionOCRProvider

    return GoogleVisionOCRProvider(vocabulary=vocabulary)


def _select_provider(
    provider: str | None,
    api_key: str | None,
    vocabulary: BeerTypeVocabulary | None = None,
    model: str | None = None,
) -> BaseProvider:
    provider_name = (provider or os.getenv("TAP_LENS_PROVIDER", "gemini")).strip().lower()
    if provider_name in {"gemini", "vision"}:
        return _build_gemini_provider(api_key, vocabulary, model)
    if provider_name in {"ocr", "google_vision_ocr", "google-vision-ocr"}:
        return _build_ocr_provider(vocabulary)
    raise ValueError(f"Unsupported provider: {provider_name}")


def _build_search_client(
    config: PipelineConfig, vocabulary: BeerTypeVocabulary
) -> BaseSearchClient | None:
    if not config.enrichment_enabled:
        return None
    if not os.getenv("BRAVE_SEARCH_API_KEY"):
        logger.info("BRAVE_SEARCH_API_KEY not set, web search enrichment disabled")
        return None
    return BraveSearchClient(timeout_sec=config.search_timeout_sec, vocabulary=vocabulary)


def build_pipeline(
    config: PipelineConfig | None = None,
    *,
    api_key: str | None = None,
    provider: str | None = None,
    backend: SupabaseBackend | None = None,
    vocabulary: BeerTypeVocabulary | None = None,
    image_provider: bool = True,
) -> MenuPipeline:
    """Wire a pipeline from configuration.

    Args:
        config: Pipeline settings. Defaults to ``PipelineConfig.from_env()``.
        api_key: Gemini API key. Falls back to GEMINI_API_KEY env var.
        provider: Provider name (`gemini`/`vision` or `ocr`). Overrides config.
        backend: Source of beer types and bars. Defaults to Supabase when
            SUPABASE_URL and SUPABASE_ANON_KEY are set.
        vocabulary: Shared style vocabulary; built from the backend if omitted.
        image_provider: Build an extraction provider. Text-only pipelines skip it.
    """
    config = config or PipelineConfig.from_env()
    if backend is None:
        backend = SupabaseBackend.from_env()
    if vocabulary is None:
        vocabulary = BeerTypeVocabulary(
            loader=backend.fetch_beer_types if backend is not None else None,
            dictionary_version=config.dictionary_version,
        )

    engine = (
        _select_provider(provider or config.provider, api_key, vocabulary, config.vision_model)
        if image_provider
        else None
    )
    enricher = Enricher(_build_search_client(config, vocabulary), vocabulary=vocabulary)
    return MenuPipeline(engine, enricher=enricher, vocabulary=vocabulary, bar_directory=backend)


def scan_menu(
    image: ImageInput,
    *,
    api_key: str | None = None,
    provider: str | None = None,
    bar: BarContext | None = None,
    attribute_to_house: bool | None = None,
) -> MenuScanResult:
    """Extract candidate beers from a bar menu photo.

    Args:
        image: Image input - file path (str), Path object, raw bytes, or PIL Image.
        api_key: Gemini API key. Falls back to GEMINI_API_KEY env var.
        provider: Provider name (`gemini` or `ocr`). Defaults to
            `TAP_LENS_PROVIDER` env var, then `gemini`.
        bar: Bar the menu belongs to, used for house attribution.
        attribute_to_house: Attribute every beer to the bar's brewery.

    Returns:
        MenuScanResult with candidates in menu order. Empty with a
        user-facing message when nothing usable was found.
    """
    result, _ = scan_menu_with_metadata(
        image,
        api_key=api_key,
        provider=provider,
        bar=bar,
        attribute_to_house=attribute_to_house,
    )
    return result


def scan_menu_with_metadata(
    image: ImageInput,
    *,
    api_key: str | None = None,
    provider: str | None = None,
    bar: BarContext | None = None,
    attribute_to_house: bool | None = None,
) -> tuple[MenuScanResult, dict[str, str]]:
    """Scan a menu photo and return provider metadata."""

    pipeline = build_pipeline(api_key=api_key, provider=provider)
    result = asyncio.run(pipeline.process(image, bar=bar, attribute_to_house=attribute_to_house))
    return result, pipeline.get_extraction_metadata()


def parse_menu(
    text: str,
    *,
    bar: BarContext | None = None,
    attribute_to_house: bool | None = None,
) -> MenuScanResult:
    """Run plain menu text through the line parser and enrichment."""
    pipeline = build_pipeline(image_provider=False)
    return asyncio.run(pipeline.process_text(text, bar=bar, attribute_to_house=attribute_to_house))
