"""Command-line interface for tap-lens."""

import argparse
import logging
import sys
from pathlib import Path

from tap_lens import __version__, parse_menu, scan_menu
from tap_lens.exceptions import AuthenticationError, TapLensError
from tap_lens.schema import BarContext, MenuScanResult


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="tap-lens",
        description="Extract candidate beers from bar menu photos",
    )
    parser.add_argument("image", nargs="?", help="Path to menu photo")
    parser.add_argument(
        "--text",
        metavar="FILE",
        help="Parse an already-transcribed menu text file instead of a photo",
    )
    parser.add_argument(
        "--provider",
        help="Extraction provider: gemini or ocr (default: TAP_LENS_PROVIDER env var)",
    )
    parser.add_argument("--api-key", help="Gemini API key (default: GEMINI_API_KEY env var)")
    parser.add_argument("--bar-name", help="Name of the bar the menu belongs to")
    parser.add_argument(
        "--house",
        action="store_true",
        help="Attribute every beer to the bar's own brewery",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    parser.add_argument("--verbose", action="store_true", help="Log pipeline progress")
    parser.add_argument(
        "--version",
        action="version",
        version=f"tap-lens {__version__}",
    )

    args = parser.parse_args(argv)
    if not args.image and not args.text:
        parser.error("an image path or --text FILE is required")
    if args.house and not args.bar_name:
        parser.error("--house requires --bar-name")

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    bar = BarContext(name=args.bar_name, is_brewery=args.house) if args.bar_name else None
    attribute_to_house = True if args.house else None

    try:
        if args.text:
            text = Path(args.text).read_text(encoding="utf-8")
            result = parse_menu(text, bar=bar, attribute_to_house=attribute_to_house)
        else:
            result = scan_menu(
                args.image,
                api_key=args.api_key,
                provider=args.provider,
                bar=bar,
                attribute_to_house=attribute_to_house,
            )
    except AuthenticationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (TapLensError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(result.model_dump_json(indent=2, exclude_none=True))
    else:
        _print_formatted(result)

    return 0 if result.candidates else 2


def _print_formatted(result: MenuScanResult) -> None:
    """Print result in human-readable format."""
    print()
    print("  tap-lens")
    print()

    if not result.candidates:
        print(f"  {result.message}")
        print()
        return

    if result.hallucination_suspected:
        print("  Warning: results look unreliable, brewery, price and size were cleared.")
        print()

    for beer in result.candidates:
        print(f"  {beer.name}  [{beer.confidence}]")
        details = [
            ("Brewery", beer.brewery),
            ("Type", beer.type),
            ("ABV", _format_abv(beer.abv)),
            ("Price", _format_price(beer.price)),
            ("Size", f"{beer.size} oz" if beer.size else None),
        ]
        for label, value in details:
            display = value if value else "-"
            print(f"    {label + ':':<9} {display}")
        print()


def _format_abv(abv: float | None) -> str | None:
    if abv is None:
        return None
    return f"{abv:g}%"


def _format_price(price: float | None) -> str | None:
    if price is None:
        return None
    return f"${price:.2f}"


if __name__ == "__main__":
    sys.exit(main())
