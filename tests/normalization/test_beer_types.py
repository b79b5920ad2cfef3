"""Tests for beer style classification and the style vocabulary."""

import threading

import pytest

from tap_lens.normalization.beer_types import (
    TYPE_RULES,
    BeerTypeVocabulary,
    classify_beer_type,
    match_beer_type,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Guinness Draught Stout", "Irish Stout"),
        ("Juicy Bits Hazy IPA", "Hazy IPA"),
        ("Sierra Nevada NEIPA", "Hazy IPA"),
        ("All Day Session IPA", "Session IPA"),
        ("Pliny Double IPA", "Double IPA"),
        ("Two Hearted IPA", "IPA"),
        ("Mirror Pond Pale Ale", "Pale Ale"),
        ("Bud Light Lager", "Lite"),
        ("Weihenstephaner Hefeweizen", "Hefeweizen"),
        ("Allagash White Wit", "Witbier"),
        ("Reissdorf Kölsch", "Kolsch"),
        ("Golden Monkey Tripel", "Tripel"),
        ("Angry Orchard Cider", "Cider"),
    ],
)
def test_classify_by_keyword(name, expected):
    assert classify_beer_type(name) == expected


def test_declared_type_wins_when_in_vocabulary():
    assert classify_beer_type("Two Hearted IPA", declared="amber ale") == "Amber Ale"


def test_declared_type_outside_vocabulary_is_ignored():
    assert classify_beer_type("Edmund Fitzgerald Porter", declared="Robust Porter") == "Porter"


@pytest.mark.parametrize("name, brewery, declared", [(None, None, None), ("", "", ""), ("   ", None, None)])
def test_classify_always_returns_a_style(name, brewery, declared):
    result = classify_beer_type(name, brewery, declared)

    assert isinstance(result, str)
    assert result == "Ale"


def test_classify_falls_back_to_requested_style():
    assert classify_beer_type("Mystery Pour", fallback="Pale Ale") == "Pale Ale"


def test_classify_fallback_outside_vocabulary_uses_ale():
    vocab = BeerTypeVocabulary(defaults=["Lager", "Ale"])
    assert classify_beer_type("Mystery Pour", vocabulary=vocab, fallback="Pale Ale") == "Ale"


def test_classify_uses_first_term_when_ale_missing():
    vocab = BeerTypeVocabulary(defaults=["Lager", "Stout"])
    assert classify_beer_type("Mystery Pour", vocabulary=vocab) == "Lager"


def _rule_index(style: str) -> int:
    return next(index for index, (_, rule_style) in enumerate(TYPE_RULES) if rule_style == style)


@pytest.mark.parametrize(
    "specific, generic",
    [
        ("Irish Stout", "Stout"),
        ("Hazy IPA", "IPA"),
        ("Session IPA", "IPA"),
        ("Double IPA", "IPA"),
        ("IPA", "Pale Ale"),
        ("Hefeweizen", "Wheat Beer"),
        ("Lite", "Lager"),
    ],
)
def test_specific_rules_precede_generic_rules(specific, generic):
    assert _rule_index(specific) < _rule_index(generic)


def test_india_pale_ale_is_ipa_not_pale_ale():
    assert match_beer_type("bell's two hearted india pale ale") == "IPA"


def test_rule_style_missing_from_vocabulary_is_skipped():
    vocab = BeerTypeVocabulary(defaults=["IPA", "Ale"])
    assert match_beer_type("juicy hazy ipa", vocabulary=vocab) == "IPA"


def test_vocabulary_loads_once_and_resolves_case_insensitively():
    calls = []

    def loader():
        calls.append(1)
        return ["IPA", "Stout", "ipa", "  ", "Lager"]

    vocab = BeerTypeVocabulary(loader)

    assert vocab.resolve("stout") == "Stout"
    assert vocab.resolve("LAGER") == "Lager"
    assert vocab.terms == ["IPA", "Stout", "Lager"]
    assert len(calls) == 1


def test_vocabulary_reload_calls_loader_again():
    batches = iter([["IPA"], ["IPA", "Gose"]])
    vocab = BeerTypeVocabulary(lambda: next(batches))

    assert vocab.resolve("gose") is None
    vocab.reload()
    assert vocab.resolve("gose") == "Gose"


def test_vocabulary_falls_back_to_defaults_when_loader_fails():
    def broken_loader():
        raise RuntimeError("backend down")

    vocab = BeerTypeVocabulary(broken_loader, defaults=["Ale", "Porter"])

    assert vocab.terms == ["Ale", "Porter"]


def test_vocabulary_falls_back_to_defaults_when_loader_empty():
    vocab = BeerTypeVocabulary(lambda: [], defaults=["Ale"])
    assert vocab.terms == ["Ale"]


def test_vocabulary_concurrent_first_access_loads_once():
    calls = []
    gate = threading.Event()

    def slow_loader():
        calls.append(1)
        gate.wait(1)
        return ["IPA"]

    vocab = BeerTypeVocabulary(slow_loader)
    threads = [threading.Thread(target=vocab.resolve, args=("ipa",)) for _ in range(5)]
    for thread in threads:
        thread.start()
    gate.set()
    for thread in threads:
        thread.join()

    assert len(calls) == 1
    assert vocab.terms == ["IPA"]
