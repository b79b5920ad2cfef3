"""Shape reviewed candidates into backend insert rows."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from tap_lens.schema import BeerInsertPayload, CandidateBeer

logger = logging.getLogger(__name__)


def default_selection(candidates: Iterable[CandidateBeer]) -> list[CandidateBeer]:
    """Candidates pre-checked for bulk add: high and medium confidence."""
    return [beer for beer in candidates if beer.confidence in ("high", "medium")]


def build_insert_payloads(
    candidates: Iterable[CandidateBeer],
    bar_id: str,
    brewery_ids: Mapping[str, int] | None = None,
) -> list[BeerInsertPayload]:
    """Build pending-review rows for confirmed candidates.

    ``brewery_ids`` maps brewery names (any case) to existing backend ids.
    Candidates without a price are skipped because the backend requires one.
    """
    ids = {name.strip().lower(): value for name, value in (brewery_ids or {}).items()}
    payloads: list[BeerInsertPayload] = []
    for beer in candidates:
        if beer.price is None:
            logger.warning("skipping %r: price is required for submission", beer.name)
            continue
        brewery_id = ids.get(beer.brewery.strip().lower()) if beer.brewery else None
        payloads.append(
            BeerInsertPayload(
                name=beer.name.strip(),
                type=beer.type,
                abv=beer.abv,
                price=beer.price,
                size=beer.size,
                brewery_id=brewery_id,
                bar_id=bar_id,
            )
        )
    return payloads
