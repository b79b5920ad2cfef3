"""Data models for tap-lens."""

from typing import Literal

from pydantic import BaseModel, Field

Confidence = Literal["high", "medium", "low"]

_CONFIDENCE_ORDER: tuple[Confidence, ...] = ("low", "medium", "high")


def downgrade(level: Confidence) -> Confidence:
    """Move a confidence level one step toward ``low``."""
    index = _CONFIDENCE_ORDER.index(level)
    return _CONFIDENCE_ORDER[max(0, index - 1)]


def lower_confidence(current: Confidence, ceiling: Confidence) -> Confidence:
    """Cap ``current`` at ``ceiling``; never raises the level."""
    if _CONFIDENCE_ORDER.index(current) > _CONFIDENCE_ORDER.index(ceiling):
        return ceiling
    return current


class CandidateBeer(BaseModel):
    """One extracted beer awaiting human review."""

    name: str = Field(min_length=2, max_length=50)
    brewery: str | None = Field(default=None, min_length=2, max_length=50)
    abv: float | None = Field(default=None, gt=0.5, lt=20)
    price: float | None = Field(default=None, ge=1, le=50)
    size: int | None = Field(default=None, ge=4, le=64)
    type: str = Field(min_length=1)
    description: str | None = None
    region: str | None = None
    confidence: Confidence = "medium"
    raw_text: str = ""


class BarContext(BaseModel):
    """Bar information used for house-beer attribution."""

    id: str | None = None
    name: str
    is_brewery: bool = False


class BeerSearchResult(BaseModel):
    """Fields returned by a web-search lookup for one beer."""

    abv: float | None = None
    size: int | None = None
    type: str | None = None
    brewery: str | None = None
    description: str | None = None
    confidence: Confidence | None = None

    def has_usable_field(self) -> bool:
        return any(value is not None for value in (self.abv, self.size, self.type, self.brewery))


class BeerInsertPayload(BaseModel):
    """Row shape the backend accepts for a user-confirmed candidate."""

    name: str
    type: str
    abv: float | None = None
    price: float
    size: int | None = None
    brewery_id: int | None = None
    bar_id: str
    pending_review: Literal[True] = True
    status: Literal["pending"] = "pending"


class MenuScanResult(BaseModel):
    """Outcome of one photo scan, handed to the review UI."""

    candidates: list[CandidateBeer] = Field(default_factory=list)
    provider: str
    hallucination_suspected: bool = False
    message: str | None = None
