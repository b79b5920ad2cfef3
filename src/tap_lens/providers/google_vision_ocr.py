"""Google Vision OCR provider implementation."""

from __future__ import annotations

import json
import logging
import os

from tap_lens.exceptions import AuthenticationError, ImageError, RateLimitError, TapLensError
from tap_lens.menu_parser import parse_menu_text
from tap_lens.normalization.beer_types import BeerTypeVocabulary
from tap_lens.providers.base import BaseProvider, ImageInput, load_image_bytes
from tap_lens.schema import CandidateBeer


class GoogleVisionOCRProvider(BaseProvider):
    """OCR text detection followed by the regex menu parser."""

    name = "ocr"

    def __init__(self, client=None, *, vocabulary: BeerTypeVocabulary | None = None):
        super().__init__(vocabulary)
        self.logger = logging.getLogger(__name__)
        self._last_parser = "menu_regex"
        self.last_text = ""

        if client is not None:
            self.client = client
            self._vision = None
            return

        try:
            from google.cloud import vision  # type: ignore
        except Exception as exc:
            raise TapLensError(
                "google-cloud-vision is required for OCR mode. "
                "Install the 'ocr' extra and set GOOGLE_APPLICATION_CREDENTIALS."
            ) from exc

        self._vision = vision
        try:
            credentials_json = os.getenv("GOOGLE_APPLICATION_CREDENTIALS_JSON")
            if credentials_json:
                from google.oauth2 import service_account  # type: ignore

                info = json.loads(credentials_json)
                credentials = service_account.Credentials.from_service_account_info(info)
                self.client = vision.ImageAnnotatorClient(credentials=credentials)
            else:
                self.client = vision.ImageAnnotatorClient()
        except Exception as exc:
            raise AuthenticationError(
                "Failed to initialize Google Vision client. "
                "Check GOOGLE_APPLICATION_CREDENTIALS(_JSON) and GCP IAM permissions."
            ) from exc

    def _extract_text(self, content: bytes) -> str:
        try:
            if self._vision is not None:
                image = self._vision.Image(content=content)
            else:
                image = {"content": content}
            response = self.client.text_detection(image=image)
        except Exception as exc:
            message = str(exc).lower()
            if "quota" in message or "rate" in message:
                raise RateLimitError(f"OCR quota exceeded: {exc}") from exc
            if "credential" in message or "permission" in message or "auth" in message:
                raise AuthenticationError(f"OCR authentication failed: {exc}") from exc
            raise TapLensError(f"OCR request failed: {exc}") from exc

        error_obj = getattr(response, "error", None)
        error_message = getattr(error_obj, "message", "") if error_obj else ""
        if error_message:
            lowered = error_message.lower()
            if "quota" in lowered or "rate" in lowered:
                raise RateLimitError(f"OCR quota exceeded: {error_message}")
            if "permission" in lowered or "auth" in lowered:
                raise AuthenticationError(f"OCR authentication failed: {error_message}")
            raise TapLensError(f"OCR request failed: {error_message}")

        annotations = getattr(response, "text_annotations", None) or []
        if not annotations:
            return ""
        return (getattr(annotations[0], "description", "") or "").strip()

    def extract(self, image: ImageInput, *, single_brewery: bool = False) -> list[CandidateBeer]:
        """OCR the menu photo and parse its lines.

        ``single_brewery`` is accepted for interface parity; the parser infers
        breweries from names only.
        """
        try:
            content = load_image_bytes(image)
            text = self._extract_text(content)
        except ImageError as exc:
            self.logger.warning("menu image unreadable: %s", exc)
            return []
        except TapLensError as exc:
            self.logger.warning("ocr extraction failed: %s", exc)
            return []

        if not text:
            self.logger.warning("no text found in menu image")
            return []
        return self.extract_from_text(text)

    def extract_from_text(self, text: str) -> list[CandidateBeer]:
        """Parse menu text that was already OCR'd elsewhere."""
        self.last_text = text
        beers = parse_menu_text(text, vocabulary=self.vocabulary)
        self.logger.info("menu parser found %d beers", len(beers))
        return beers

    def get_extraction_metadata(self) -> dict[str, str]:
        return {"provider": self.name, "parser": self._last_parser, "ocr_text": self.last_text}
