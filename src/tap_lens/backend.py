"""Read-only access to the Supabase backend over its REST interface."""

from __future__ import annotations

import json
import logging
import os
from urllib import error, parse, request

from tap_lens.exceptions import AuthenticationError
from tap_lens.schema import BarContext

logger = logging.getLogger(__name__)


class SupabaseBackend:
    """Fetches canonical beer types and bar context via PostgREST."""

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        *,
        timeout_sec: float = 5.0,
    ):
        self.url = (url or os.getenv("SUPABASE_URL") or "").rstrip("/")
        self.api_key = api_key or os.getenv("SUPABASE_ANON_KEY")
        if not self.url or not self.api_key:
            raise AuthenticationError(
                "Supabase is not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY "
                "or pass url and api_key."
            )
        self.timeout_sec = timeout_sec

    @classmethod
    def from_env(cls) -> "SupabaseBackend | None":
        if not (os.getenv("SUPABASE_URL") and os.getenv("SUPABASE_ANON_KEY")):
            return None
        return cls()

    def _get(self, table: str, params: dict[str, str]) -> list[dict]:
        url = f"{self.url}/rest/v1/{table}?{parse.urlencode(params)}"
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        req = request.Request(url, headers=headers, method="GET")
        with request.urlopen(req, timeout=self.timeout_sec) as resp:
            rows = json.loads(resp.read().decode("utf-8"))
        return rows if isinstance(rows, list) else []

    def fetch_beer_types(self) -> list[str]:
        """Return the canonical style list. Raises on transport failure."""
        rows = self._get("beer_types", {"select": "type"})
        return [row["type"] for row in rows if isinstance(row.get("type"), str)]

    def get_bar(self, bar_id: str) -> BarContext | None:
        try:
            rows = self._get(
                "bars",
                {"select": "id,name,is_brewery", "id": f"eq.{bar_id}", "limit": "1"},
            )
        except (error.URLError, TimeoutError, ValueError) as exc:
            logger.warning("bar lookup failed for %s: %s", bar_id, exc)
            return None

        if not rows or not rows[0].get("name"):
            return None
        row = rows[0]
        return BarContext(
            id=str(row.get("id", bar_id)),
            name=row["name"],
            is_brewery=bool(row.get("is_brewery")),
        )
