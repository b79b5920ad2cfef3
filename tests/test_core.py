"""Tests for core scanning functions."""

import pytest

from tap_lens import CandidateBeer, parse_menu, scan_menu
from tap_lens.core import build_pipeline, scan_menu_with_metadata
from tap_lens.exceptions import AuthenticationError
from tap_lens.pipeline import PipelineConfig


@pytest.fixture(autouse=True)
def no_external_services(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    monkeypatch.delenv("BRAVE_SEARCH_API_KEY", raising=False)


def _mock_provider(mocker, beers, name="gemini"):
    provider = mocker.MagicMock()
    provider.name = name
    provider.extract.return_value = beers
    provider.get_extraction_metadata.return_value = {"provider": name, "parser": "json"}
    return provider


def test_scan_menu_requires_api_key(monkeypatch):
    """scan_menu() should raise AuthenticationError without API key."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    with pytest.raises(AuthenticationError):
        scan_menu("menu.jpg", provider="gemini")


def test_scan_menu_with_mock_gemini_provider(mocker):
    """scan_menu() should return candidates from the gemini provider."""
    beers = [
        CandidateBeer(name="Two Hearted", brewery="Bell's Brewery", abv=7.0, type="IPA", confidence="high"),
        CandidateBeer(name="Nubian", abv=5.7, type="Brown Ale", confidence="medium"),
    ]
    mock_provider = _mock_provider(mocker, beers)
    build = mocker.patch("tap_lens.core._build_gemini_provider", return_value=mock_provider)

    result = scan_menu("menu.jpg", api_key="test-key", provider="gemini")

    assert [beer.name for beer in result.candidates] == ["Two Hearted", "Nubian"]
    assert result.provider == "gemini"
    assert result.message is None
    assert build.call_args.args[0] == "test-key"
    mock_provider.extract.assert_called_once_with("menu.jpg", single_brewery=False)


def test_scan_menu_with_metadata_returns_provider_metadata(mocker):
    mock_provider = _mock_provider(mocker, [CandidateBeer(name="Brawler", type="Ale", abv=4.2)])
    mocker.patch("tap_lens.core._build_gemini_provider", return_value=mock_provider)

    result, metadata = scan_menu_with_metadata("menu.jpg", provider="vision")

    assert result.candidates[0].name == "Brawler"
    assert metadata == {"provider": "gemini", "parser": "json"}


def test_scan_menu_uses_ocr_provider_when_selected(mocker):
    mock_provider = _mock_provider(mocker, [], name="ocr")
    mocker.patch("tap_lens.core._build_ocr_provider", return_value=mock_provider)

    result = scan_menu("menu.jpg", provider="ocr")

    assert result.candidates == []
    assert result.provider == "ocr"
    assert result.message
    mock_provider.extract.assert_called_once_with("menu.jpg", single_brewery=False)


def test_scan_menu_unsupported_provider_raises():
    with pytest.raises(ValueError):
        scan_menu("menu.jpg", provider="unknown")


def test_parse_menu_runs_without_provider():
    result = parse_menu("BUD LIGHT 4.2% $6")

    assert result.provider == "menu_text"
    assert result.candidates[0].brewery == "Anheuser-Busch"


def test_build_pipeline_uses_backend_for_vocabulary_and_bars(mocker):
    backend = mocker.Mock()
    backend.fetch_beer_types.return_value = ["Lager", "Ale", "Pale Ale"]

    pipeline = build_pipeline(PipelineConfig(), backend=backend, image_provider=False)

    assert pipeline.provider is None
    assert pipeline.bar_directory is backend
    assert pipeline.vocabulary.terms == ["Lager", "Ale", "Pale Ale"]
    assert pipeline.enricher.vocabulary is pipeline.vocabulary


def test_build_pipeline_enables_search_with_key(monkeypatch):
    monkeypatch.setenv("BRAVE_SEARCH_API_KEY", "search-key")

    enabled = build_pipeline(PipelineConfig(), image_provider=False)
    disabled = build_pipeline(PipelineConfig(enrichment_enabled=False), image_provider=False)

    assert enabled.enricher.search_client is not None
    assert enabled.enricher.search_client.api_key == "search-key"
    assert disabled.enricher.search_client is None
