"""Tests for batch-level hallucination detection."""

from tap_lens.normalization.hallucination import detect_hallucination, filter_hallucinations
from tap_lens.schema import CandidateBeer


def _beer(name, abv=None, **kwargs):
    defaults = {"type": "Ale", "brewery": "Yards Brewing", "price": 7.0, "size": 16, "confidence": "high"}
    return CandidateBeer(name=name, abv=abv, **{**defaults, **kwargs})


def test_uniform_abv_batch_is_stripped():
    batch = [_beer(f"Beer Name {index}", 5.0) for index in range(5)]

    result = filter_hallucinations(batch)

    assert "uniform_abv" in detect_hallucination(batch)
    assert len(result) == 5
    for beer in result:
        assert beer.brewery is None
        assert beer.price is None
        assert beer.size is None
        assert beer.confidence == "medium"
        assert beer.abv == 5.0


def test_filter_never_raises_confidence():
    batch = [_beer(f"Pour {index}", 6.0, confidence="low") for index in range(3)]

    result = filter_hallucinations(batch)

    assert [beer.confidence for beer in result] == ["low", "low", "low"]


def test_common_abv_values():
    batch = [
        _beer("Philly Pale", 4.2),
        _beer("Brawler", 5.0),
        _beer("Love Stout", 5.5),
        _beer("Signature IPA", 7.0),
        _beer("Golden Ale", 6.5),
    ]

    assert detect_hallucination(batch) == ["common_abv"]


def test_common_abv_needs_three_values():
    batch = [_beer("Philly Pale", 5.0), _beer("Brawler", 4.2), _beer("Nubian")]

    assert detect_hallucination(batch) == []


def test_generic_names():
    batch = [_beer("House Lager", 4.7), _beer("Tap 3", 6.1), _beer("Local IPA", 6.8)]

    assert detect_hallucination(batch) == ["generic_names"]


def test_foreign_brewery():
    batch = [_beer("Bolleke", 5.2, brewery="Brouwerij De Koninck"), _beer("Brawler", 4.2)]

    assert detect_hallucination(batch) == ["foreign_brewery"]


def test_generic_brewery_substring():
    batch = [_beer("Amber", 5.3, brewery="Local Brewery Co."), _beer("Brawler", 4.2)]

    assert detect_hallucination(batch) == ["generic_brewery"]


def test_real_beer_company_is_not_generic():
    batch = [_beer("Boston Lager", 5.0, brewery="Boston Beer Company"), _beer("Brawler", 4.2)]

    assert detect_hallucination(batch) == []


def test_flat_pricing_alone_is_not_suspicious():
    batch = [_beer("Two Hearted", 7.0), _beer("Nubian", 5.7), _beer("Philly Pale", 4.6)]

    assert {beer.price for beer in batch} == {7.0}
    assert filter_hallucinations(batch) is batch


def test_clean_batch_returned_unchanged():
    batch = [_beer("Two Hearted", 7.0), _beer("Nubian", 5.7), _beer("Philly Pale", 4.6)]

    assert detect_hallucination(batch) == []
    assert filter_hallucinations(batch) is batch


def test_single_beer_is_not_suspicious():
    batch = [_beer("Bud Light", 4.2)]

    assert filter_hallucinations(batch) is batch


def test_empty_batch():
    assert detect_hallucination([]) == []
    assert filter_hallucinations([]) == []
