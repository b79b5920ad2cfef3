"""Gemini vision provider implementation."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any

from google import genai
from google.genai import errors, types

from tap_lens.exceptions import AuthenticationError, ImageError
from tap_lens.normalization.beer_types import BeerTypeVocabulary
from tap_lens.normalization.validators import validate_candidate
from tap_lens.providers.base import BaseProvider, ImageInput, load_image_bytes
from tap_lens.schema import CandidateBeer

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"

EXTRACTION_PROMPT = """Extract the beers listed on this bar menu or tap list image.

STRICT RULES:
1. Extract ONLY what you can clearly read in the image. Do not fabricate anything.
2. Skip food, wine, cocktails and section headings.
3. Use null for any field that is not printed next to the beer.
4. abv is a number (percent), price is a number (currency units), size is whole ounces.
5. If a beer lists two prices for two sizes, return one entry per size.
{brewery_rule}
Return ONLY a JSON array, for example:
[
  {{
    "name": "NUBIAN",
    "brewery": null,
    "type": "Brown Ale",
    "abv": 5.7,
    "price": null,
    "size": null,
    "confidence": "high"
  }}
]"""

_BREWERY_RULE = "6. Include the brewery only if it is printed next to the beer."
_SINGLE_BREWERY_RULE = (
    "6. Every beer on this menu comes from the same brewery: set brewery to null."
)

_MAGIC_NUMBERS: list[tuple[bytes, str]] = [
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
]
_BASE64_PREFIXES: list[tuple[str, str]] = [
    ("/9j/", "image/jpeg"),
    ("iVBORw0KGgo", "image/png"),
    ("UklGR", "image/webp"),
    ("R0lGOD", "image/gif"),
]

# Name (Brewery, 4.2% ABV) - $4.50 - 10oz, optionally with a dual $4.50/$5.50 price.
_MENU_REPLY_LINE = re.compile(
    r"^\s*(?:[-*•]\s*|\d+[.)]\s*)?"
    r"(?P<name>[^(]+?)\s*"
    r"\((?:(?P<brewery>[^,()]*?),\s*)?(?P<abv>\d+(?:\.\d+)?)\s*%\s*ABV\)\s*"
    r"-\s*\$(?P<price>\d+(?:\.\d+)?)(?:\s*/\s*\$(?P<price2>\d+(?:\.\d+)?))?"
    r"(?:\s*-\s*(?P<size>\d+)\s*oz)?",
    re.IGNORECASE,
)
SMALL_POUR_OZ = 10
LARGE_POUR_OZ = 16


def detect_media_type(payload: bytes | str) -> str:
    """Sniff the container format from raw bytes or a base64 string."""
    if isinstance(payload, str):
        for prefix, media_type in _BASE64_PREFIXES:
            if payload.startswith(prefix):
                return media_type
        return "image/jpeg"

    for magic, media_type in _MAGIC_NUMBERS:
        if payload.startswith(magic):
            return media_type
    if payload[:4] == b"RIFF" and payload[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


@dataclass(frozen=True)
class JsonArrayResult:
    """Outcome of locating a JSON array inside free-form model output."""

    items: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def extract_json_array(text: str | None) -> JsonArrayResult:
    """Find the first JSON array of objects in ``text``.

    The model may wrap the array in prose or code fences. The widest
    ``[...]`` span is tried first, then every ``[`` position in order.
    """
    if not text or not text.strip():
        return JsonArrayResult(error="empty_reply")

    widest = re.search(r"\[[\s\S]*\]", text)
    if widest:
        try:
            value = json.loads(widest.group(0))
        except json.JSONDecodeError:
            value = None
        if isinstance(value, list) and (not value or _has_objects(value)):
            return JsonArrayResult(items=[item for item in value if isinstance(item, dict)])

    decoder = json.JSONDecoder()
    for match in re.finditer(r"\[", text):
        try:
            value, _ = decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        if isinstance(value, list) and _has_objects(value):
            return JsonArrayResult(items=[item for item in value if isinstance(item, dict)])
    return JsonArrayResult(error="no_json_array")


def _has_objects(value: list[Any]) -> bool:
    return any(isinstance(item, dict) for item in value)


def parse_reply_lines(text: str) -> list[dict[str, Any]]:
    """Parse ``Name (Brewery, ABV% ABV) - $Price - SizeOz`` lines."""
    records: list[dict[str, Any]] = []
    for line in (text or "").splitlines():
        match = _MENU_REPLY_LINE.match(line)
        if not match:
            continue
        base = {
            "name": match.group("name").strip(),
            "brewery": (match.group("brewery") or "").strip() or None,
            "abv": float(match.group("abv")),
            "confidence": "high",
        }
        size = int(match.group("size")) if match.group("size") else None
        if match.group("price2"):
            records.append({**base, "price": float(match.group("price")), "size": SMALL_POUR_OZ})
            records.append({**base, "price": float(match.group("price2")), "size": LARGE_POUR_OZ})
        else:
            records.append({**base, "price": float(match.group("price")), "size": size})
    return records


class GeminiProvider(BaseProvider):
    """Gemini vision API provider."""

    name = "gemini"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        *,
        client=None,
        vocabulary: BeerTypeVocabulary | None = None,
        max_output_tokens: int = 1500,
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Gemini API key. Falls back to GEMINI_API_KEY env var.
            model: Model name to use. Falls back to TAP_LENS_VISION_MODEL.
            client: Preconfigured client exposing ``models.generate_content``.
            vocabulary: Beer style vocabulary used to classify results.
            max_output_tokens: Reply length limit.

        Raises:
            AuthenticationError: If no client is given and no API key is found.
        """
        super().__init__(vocabulary)
        self.model = model or os.getenv("TAP_LENS_VISION_MODEL", DEFAULT_MODEL)
        self.max_output_tokens = max_output_tokens
        self._last_parser = "none"

        if client is not None:
            self.client = client
            return

        self.api_key = api_key or os.environ.get("GEMINI_API_KEY")
        if not self.api_key:
            raise AuthenticationError(
                "No API key provided. Set GEMINI_API_KEY environment variable "
                "or pass api_key parameter."
            )
        self.client = genai.Client(api_key=self.api_key)

    def extract(self, image: ImageInput, *, single_brewery: bool = False) -> list[CandidateBeer]:
        """Extract beers from a menu photo using Gemini vision.

        Request, reply and parse failures are logged and produce an empty list.
        """
        self._last_parser = "none"
        try:
            content = load_image_bytes(image)
        except ImageError as e:
            logger.warning("menu image unreadable: %s", e)
            return []

        reply = self._request(content, single_brewery=single_brewery)
        if not reply:
            return []

        records = self._parse_reply(reply)
        if not records:
            logger.warning("no beers found in vision reply")
            return []

        beers: list[CandidateBeer] = []
        for record in records:
            if single_brewery:
                record = {**record, "brewery": None}
            beer = validate_candidate(
                record,
                vocabulary=self.vocabulary,
                fallback_type="Pale Ale",
                raw_text=f"{record.get('name')} - vision {self._last_parser}",
            )
            if beer is not None:
                beers.append(beer)
        logger.info("vision extracted %d of %d records", len(beers), len(records))
        return beers

    def _request(self, content: bytes, *, single_brewery: bool) -> str:
        prompt = EXTRACTION_PROMPT.format(
            brewery_rule=_SINGLE_BREWERY_RULE if single_brewery else _BREWERY_RULE
        )
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=content, mime_type=detect_media_type(content)),
                    prompt,
                ],
                config=types.GenerateContentConfig(
                    temperature=0.0,
                    max_output_tokens=self.max_output_tokens,
                ),
            )
        except errors.APIError as e:
            message = str(e).lower()
            if "rate" in message or "quota" in message:
                logger.warning("vision rate limit exceeded: %s", e)
            else:
                logger.warning("vision request failed: %s", e)
            return ""
        except Exception:
            logger.exception("vision request failed")
            return ""

        text = getattr(response, "text", None) or ""
        if not text.strip():
            logger.warning("vision model returned an empty reply")
        return text

    def _parse_reply(self, reply: str) -> list[dict[str, Any]]:
        result = extract_json_array(reply)
        if result.ok:
            self._last_parser = "json"
            return result.items

        records = parse_reply_lines(reply)
        if records:
            self._last_parser = "lines"
            return records

        logger.warning("vision reply had no parsable beer list (%s)", result.error)
        return []

    def get_extraction_metadata(self) -> dict[str, str]:
        return {"provider": self.name, "parser": self._last_parser, "model": self.model}
