# dinefinder/storage/supabase.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from .base import StorageError, clean_place_ids

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SupabaseConfig:
    url: str
    service_role_key: str
    visited_table: str = "visited_restaurants"
    signed_table: str = "signed_restaurants"


class SupabaseStore:
    """
    Visited / signed relations in Supabase tables:
      - visited_restaurants(user_id, place_id), unique on (user_id, place_id)
      - signed_restaurants(place_id)

    Uses the service role key, so it must only ever run server side.
    """

    def __init__(self, cfg: SupabaseConfig, client: Optional[AsyncClient] = None):
        if not cfg.url or not cfg.service_role_key:
            raise StorageError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured")
        self.cfg = cfg
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self):
        if self._client is None:
            self._client = await acreate_client(self.cfg.url, self.cfg.service_role_key)
            self._owns_client = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self._owns_client and self._client is not None:
            await self._client.postgrest.aclose()
            self._client = None

    @property
    def client(self) -> AsyncClient:
        if self._client is None:
            raise RuntimeError("SupabaseStore must be used with 'async with' or provide a client.")
        return self._client

    async def _execute(self, query: Any, what: str) -> List[Dict[str, Any]]:
        try:
            resp = await query.execute()
        except APIError as e:
            raise StorageError(f"{what} failed: {e.message or e}") from e
        except httpx.HTTPError as e:
            raise StorageError(f"{what} failed: {e}") from e
        return resp.data or []

    async def list_place_ids(self, user: str) -> List[str]:
        rows = await self._execute(
            self.client.table(self.cfg.visited_table).select("place_id").eq("user_id", user),
            "list visited",
        )
        return [r["place_id"] for r in rows if r.get("place_id")]

    async def set_visited(self, user: str, place_id: str, visited: bool) -> None:
        if visited:
            await self._upsert_visited([{"user_id": user, "place_id": place_id}])
            return
        await self._execute(
            self.client.table(self.cfg.visited_table).delete().eq("user_id", user).eq("place_id", place_id),
            "clear visited",
        )

    async def import_place_ids(self, user: str, place_ids: Iterable[str]) -> int:
        ids = clean_place_ids(place_ids)
        if not ids:
            return 0
        await self._upsert_visited([{"user_id": user, "place_id": pid} for pid in ids])
        logger.info("Imported %d visited marks for %s", len(ids), user)
        return len(ids)

    async def _upsert_visited(self, rows: List[Dict[str, str]]) -> None:
        await self._execute(
            self.client.table(self.cfg.visited_table).upsert(rows, on_conflict="user_id,place_id"),
            "upsert visited",
        )

    async def signed_among(self, place_ids: Iterable[str]) -> Set[str]:
        ids = clean_place_ids(place_ids)
        if not ids:
            return set()
        rows = await self._execute(
            self.client.table(self.cfg.signed_table).select("place_id").in_("place_id", ids),
            "signed lookup",
        )
        return {r["place_id"] for r in rows if r.get("place_id")}

    async def is_signed(self, place_id: str) -> bool:
        rows = await self._execute(
            self.client.table(self.cfg.signed_table).select("place_id").eq("place_id", place_id).limit(1),
            "signed lookup",
        )
        return bool(rows)
