"""Validate packaged brewery and beer style data.

Checks:
1. Brewery keys are lowercase, stripped and unique.
2. No brewery key is shadowed by an earlier key it contains.
3. Beer styles are unique ignoring case and include the fallback styles.
4. Every style produced by a classification rule exists in the style list.
"""

from __future__ import annotations

import runpy
from pathlib import Path

from tap_lens.normalization.beer_types import TYPE_RULES

ROOT = Path(__file__).resolve().parent.parent
DATA_ROOT = ROOT / "src" / "tap_lens" / "normalization" / "data"
FALLBACK_STYLES = ("Ale", "Pale Ale")


def fail(message: str) -> None:
    print(f"[dictionary-check] ERROR: {message}")
    raise SystemExit(1)


def load_python_constant(path: Path, key: str) -> list:
    namespace = runpy.run_path(str(path))
    if key not in namespace or not isinstance(namespace[key], list):
        fail(f"Missing or invalid constant '{key}' in {path}")
    return namespace[key]


def validate_brewery_keys(entries: list[tuple[str, str]], label: str) -> None:
    seen: set[str] = set()
    for key, brewery in entries:
        if key != key.strip().lower():
            fail(f"{label}: brewery key must be lowercase and stripped: {key!r}")
        if not brewery.strip():
            fail(f"{label}: empty brewery for key {key!r}")
        if key in seen:
            fail(f"{label}: duplicate brewery key {key!r}")
        seen.add(key)


def validate_brewery_order(entries: list[tuple[str, str]], label: str) -> None:
    keys = [key for key, _ in entries]
    for later_index, later in enumerate(keys):
        for earlier in keys[:later_index]:
            if earlier in later:
                fail(
                    f"{label}: key {later!r} is shadowed by earlier key {earlier!r}. "
                    f"Move the longer key above it."
                )


def validate_beer_types(styles: list[str], label: str) -> None:
    lowered = [style.strip().lower() for style in styles]
    if len(set(lowered)) != len(lowered):
        fail(f"{label}: duplicate beer styles (case-insensitive)")
    for fallback in FALLBACK_STYLES:
        if fallback.lower() not in lowered:
            fail(f"{label}: missing fallback style {fallback!r}")
    for _, style in TYPE_RULES:
        if style.lower() not in lowered:
            fail(f"{label}: classification rule produces unknown style {style!r}")


def iter_dictionary_versions() -> list[Path]:
    versions: list[Path] = []
    for path in sorted(DATA_ROOT.iterdir()):
        if not path.is_dir():
            continue
        if all((path / name).exists() for name in ("breweries.py", "beer_types.py")):
            versions.append(path)
    if not versions:
        fail(f"No dictionary versions found under {DATA_ROOT}")
    return versions


def main() -> int:
    for version_dir in iter_dictionary_versions():
        label = version_dir.name
        breweries = load_python_constant(version_dir / "breweries.py", "BREWERIES")
        styles = load_python_constant(version_dir / "beer_types.py", "BEER_TYPES")

        validate_brewery_keys(breweries, label)
        validate_brewery_order(breweries, label)
        validate_beer_types(styles, label)

    print("[dictionary-check] OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
