"""Tests for house attribution and web-search enrichment."""

import asyncio
import threading

from tap_lens.enrichment import (
    BaseSearchClient,
    BraveSearchClient,
    Enricher,
    parse_search_snippets,
    search_beer,
)
from tap_lens.normalization.beer_types import BeerTypeVocabulary
from tap_lens.schema import BarContext, BeerSearchResult, CandidateBeer


class StubSearchClient(BaseSearchClient):
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def lookup(self, name, brewery):
        self.calls.append((name, brewery))
        if self.error is not None:
            raise self.error
        return self.result


def _beer(**kwargs):
    values = {"name": "Two Hearted", "type": "IPA", "confidence": "medium", "raw_text": "Two Hearted"}
    values.update(kwargs)
    return CandidateBeer(**values)


def test_house_attribution_overrides_brewery():
    bar = BarContext(name="Tavern X")
    beers = [
        _beer(brewery="Bell's Brewery", confidence="low"),
        _beer(name="Tavern Red", brewery=None, type="Red Ale", abv=5.4, size=16),
    ]

    result = asyncio.run(Enricher().enrich_all(beers, bar, attribute_to_house=True))

    assert [beer.brewery for beer in result] == ["Tavern X", "Tavern X"]
    assert all(beer.confidence == "high" for beer in result)
    assert result[0].description == "House beer at Tavern X"
    assert result[0].raw_text.endswith("| house beer")


def test_house_attribution_follows_bar_flag_when_unset():
    bar = BarContext(name="Yards Tap Room", is_brewery=True)

    beer = asyncio.run(Enricher().enrich(_beer(brewery="Bell's Brewery"), bar))

    assert beer.brewery == "Yards Tap Room"


def test_bar_description_without_house_attribution():
    bar = BarContext(name="Tavern X")

    beer = asyncio.run(Enricher().enrich(_beer(), bar, attribute_to_house=False))

    assert beer.description == "Beer available at Tavern X"
    assert beer.brewery is None
    assert beer.confidence == "medium"


def test_search_fills_missing_abv_and_raises_confidence():
    client = StubSearchClient(result=BeerSearchResult(abv=6.5))
    enricher = Enricher(client)

    beer = asyncio.run(enricher.enrich(_beer(brewery="Bell's Brewery", size=16)))

    assert beer.abv == 6.5
    assert beer.confidence == "high"
    assert beer.raw_text == "Two Hearted | web search"
    assert client.calls == [("Two Hearted", "Bell's Brewery")]


def test_search_without_result_leaves_candidate_unchanged():
    client = StubSearchClient(result=None)
    original = _beer(brewery="Bell's Brewery")

    beer = asyncio.run(Enricher(client).enrich(original))

    assert beer.abv is None
    assert beer.confidence == "medium"
    assert beer == original


def test_search_failure_is_absorbed():
    client = StubSearchClient(error=TimeoutError("slow"))
    original = _beer(brewery="Bell's Brewery")

    beer = asyncio.run(Enricher(client).enrich(original))

    assert beer == original


def test_search_skipped_without_brewery_or_when_complete():
    client = StubSearchClient(result=BeerSearchResult(abv=6.5))
    enricher = Enricher(client)

    asyncio.run(enricher.enrich(_beer(brewery=None)))
    asyncio.run(enricher.enrich(_beer(brewery="Bell's Brewery", abv=7.0, size=16)))

    assert client.calls == []


def test_search_does_not_overwrite_known_values():
    client = StubSearchClient(result=BeerSearchResult(abv=9.9, size=12))

    beer = asyncio.run(Enricher(client).enrich(_beer(brewery="Bell's Brewery", abv=7.0)))

    assert beer.abv == 7.0
    assert beer.size == 12
    assert beer.confidence == "high"


def test_search_type_replaces_unknown_type():
    client = StubSearchClient(result=BeerSearchResult(type="Porter"))

    beer = asyncio.run(Enricher(client).enrich(_beer(name="Black Butte", brewery="Deschutes", type="Dark")))

    assert beer.type == "Porter"
    assert beer.abv is None
    assert beer.confidence == "high"


def test_search_raises_confidence_when_nothing_is_missing_from_result():
    client = StubSearchClient(result=BeerSearchResult(abv=7.0, type="IPA"))

    beer = asyncio.run(Enricher(client).enrich(_beer(brewery="Bell's Brewery", abv=7.0)))

    assert beer.abv == 7.0
    assert beer.size is None
    assert beer.confidence == "high"
    assert beer.raw_text == "Two Hearted | web search"


def test_search_result_without_usable_fields_keeps_confidence():
    client = StubSearchClient(result=BeerSearchResult(description="A hoppy classic", confidence="low"))

    beer = asyncio.run(Enricher(client).enrich(_beer(brewery="Bell's Brewery")))

    assert beer.description == "A hoppy classic"
    assert beer.confidence == "medium"


def test_enrich_all_loads_vocabulary_off_the_event_loop():
    loader_threads = []

    def loader():
        loader_threads.append(threading.get_ident())
        return ["IPA", "Pale Ale"]

    enricher = Enricher(vocabulary=BeerTypeVocabulary(loader))

    async def run():
        return threading.get_ident(), await enricher.enrich_all([_beer(), _beer(name="Nubian", type="Dark")])

    loop_thread, result = asyncio.run(run())

    assert len(loader_threads) == 1
    assert loader_threads[0] != loop_thread
    assert [beer.type for beer in result] == ["IPA", "Pale Ale"]


def test_enrich_all_keeps_order_and_drops_implausible():
    beers = [_beer(name="Nubian"), _beer(name="Draft"), _beer(name="Brawler")]

    result = asyncio.run(Enricher().enrich_all(beers))

    assert [beer.name for beer in result] == ["Nubian", "Brawler"]


def test_search_beer_reports_failure():
    outcome = asyncio.run(search_beer(StubSearchClient(error=ValueError("bad json")), "Nubian", "Yards"))

    assert not outcome.ok
    assert outcome.error == "bad json"
    assert outcome.result is None


def test_parse_search_snippets_prefers_named_snippets():
    snippets = [
        "Best beers of 2024: many are 5% ABV and served in 16 oz pints",
        "Bell's Two Hearted IPA is a 7% ABV American IPA brewed in Michigan",
    ]

    result = parse_search_snippets("Two Hearted", snippets)

    assert result is not None
    assert result.abv == 7.0
    assert result.type == "IPA"
    assert result.size is None
    assert result.confidence == "high"


def test_parse_search_snippets_reads_size_from_named_snippets():
    snippets = [
        "Pint night: all drafts poured in 20 oz glasses",
        "Nubian brown ale, 5.7% ABV, sold in 12 oz cans",
    ]

    result = parse_search_snippets("Nubian", snippets)

    assert result is not None
    assert result.size == 12
    assert result.abv == 5.7


def test_parse_search_snippets_without_facts():
    assert parse_search_snippets("Two Hearted", ["A cozy bar with live music"]) is None


def test_brave_client_parses_response(mocker):
    body = b'{"web": {"results": [{"title": "Nubian Brown Ale", "description": "Nubian is a 5.7% ABV brown ale."}]}}'
    response = mocker.MagicMock()
    response.read.return_value = body
    response.__enter__.return_value = response
    urlopen = mocker.patch("tap_lens.enrichment.request.urlopen", return_value=response)

    client = BraveSearchClient(api_key="test-key", timeout_sec=2.0)
    result = client.lookup("Nubian", "Yards Brewing")

    assert result is not None
    assert result.abv == 5.7
    assert result.type == "Brown Ale"
    req = urlopen.call_args.args[0]
    assert req.get_header("X-subscription-token") == "test-key"
    assert urlopen.call_args.kwargs["timeout"] == 2.0
