"""Base provider interface."""

from abc import ABC, abstractmethod
from io import BytesIO
from pathlib import Path

from PIL import Image

from tap_lens.exceptions import ImageError
from tap_lens.normalization.beer_types import BeerTypeVocabulary
from tap_lens.schema import CandidateBeer

ImageInput = str | Path | bytes | Image.Image


class BaseProvider(ABC):
    """Abstract base class for menu extraction strategies.

    Implementations return validated candidates in menu order and absorb
    their own extraction failures by returning an empty list.
    """

    name = "base"

    def __init__(self, vocabulary: BeerTypeVocabulary | None = None):
        self.vocabulary = vocabulary or BeerTypeVocabulary()

    @abstractmethod
    def extract(self, image: ImageInput, *, single_brewery: bool = False) -> list[CandidateBeer]:
        """Extract candidate beers from a menu image.

        Args:
            image: Image input (file path, Path object, raw bytes, or PIL Image)
            single_brewery: Every beer on the menu comes from one brewery, so
                per-beer brewery names should not be extracted.

        Returns:
            Candidate beers; empty if nothing could be extracted
        """
        pass

    def get_extraction_metadata(self) -> dict[str, str]:
        """Return provider-specific extraction metadata."""
        return {"provider": self.name}


def load_image_bytes(image: ImageInput) -> bytes:
    """Read an image input into encoded bytes (JPEG, PNG or WEBP)."""
    if isinstance(image, bytes):
        if not image:
            raise ImageError("Empty image payload")
        return image

    if isinstance(image, Image.Image):
        with BytesIO() as buffer:
            fmt = (image.format or "PNG").upper()
            if fmt not in {"JPEG", "PNG", "WEBP"}:
                fmt = "PNG"
            image.save(buffer, format=fmt)
            return buffer.getvalue()

    path = Path(image) if isinstance(image, str) else image
    if not path.exists():
        raise ImageError(f"Image file not found: {path}")
    try:
        return path.read_bytes()
    except OSError as e:
        raise ImageError(f"Failed to open image: {e}") from e
