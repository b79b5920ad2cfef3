"""Tests for the Google Vision OCR provider."""

from types import SimpleNamespace

from PIL import Image

from tap_lens.providers.google_vision_ocr import GoogleVisionOCRProvider


class MockOCRClient:
    def __init__(self, text="", error_message="", raises=None):
        self.text = text
        self.error_message = error_message
        self.raises = raises

    def text_detection(self, image):
        if self.raises is not None:
            raise self.raises
        annotations = [SimpleNamespace(description=self.text)] if self.text else []
        return SimpleNamespace(
            text_annotations=annotations,
            error=SimpleNamespace(message=self.error_message),
        )


def _white_image():
    return Image.new("RGB", (20, 20), color="white")


def test_extract_parses_ocr_text_lines():
    text = "DRAFT BEERS\nBUD LIGHT 4.2% $6\nDOGFISH HEAD 60 MINUTE IPA 6.0% Delaware $9\n"
    provider = GoogleVisionOCRProvider(client=MockOCRClient(text=text))

    beers = provider.extract(_white_image())
    metadata = provider.get_extraction_metadata()

    assert [beer.name for beer in beers] == ["BUD LIGHT", "DOGFISH HEAD 60 MINUTE IPA"]
    assert beers[1].region == "Delaware"
    assert metadata["provider"] == "ocr"
    assert metadata["parser"] == "menu_regex"
    assert metadata["ocr_text"] == text.strip()


def test_extract_returns_empty_when_no_text():
    provider = GoogleVisionOCRProvider(client=MockOCRClient(text=""))

    assert provider.extract(_white_image()) == []


def test_extract_returns_empty_on_quota_error():
    provider = GoogleVisionOCRProvider(client=MockOCRClient(error_message="Quota exceeded for project"))

    assert provider.extract(_white_image()) == []


def test_extract_returns_empty_when_client_raises():
    provider = GoogleVisionOCRProvider(client=MockOCRClient(raises=RuntimeError("permission denied")))

    assert provider.extract(_white_image()) == []


def test_extract_from_text_skips_request():
    provider = GoogleVisionOCRProvider(client=MockOCRClient(raises=AssertionError("not called")))

    beers = provider.extract_from_text("GUINNESS A classic Irish dry stout. 4.2% Ireland 7")

    assert len(beers) == 1
    assert beers[0].type == "Irish Stout"
    assert beers[0].confidence == "high"
