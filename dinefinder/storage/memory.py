from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set

from .base import clean_place_ids


class MemoryStore:
    """Process-local visited/signed relations, for development and tests."""

    def __init__(self, signed: Optional[Iterable[str]] = None):
        # dicts keep insertion order, standing in for row order
        self._visited: Dict[str, Dict[str, None]] = {}
        self._signed: Set[str] = set(signed or ())

    async def list_place_ids(self, user: str) -> List[str]:
        return list(self._visited.get(user, {}))

    async def set_visited(self, user: str, place_id: str, visited: bool) -> None:
        rows = self._visited.setdefault(user, {})
        if visited:
            rows[place_id] = None
        else:
            rows.pop(place_id, None)

    async def import_place_ids(self, user: str, place_ids: Iterable[str]) -> int:
        ids = clean_place_ids(place_ids)
        rows = self._visited.setdefault(user, {})
        for pid in ids:
            rows[pid] = None
        return len(ids)

    def row_count(self, user: str) -> int:
        return len(self._visited.get(user, {}))

    async def signed_among(self, place_ids: Iterable[str]) -> Set[str]:
        return {pid for pid in place_ids if pid in self._signed}

    async def is_signed(self, place_id: str) -> bool:
        return place_id in self._signed
