# Storage interfaces for visited marks and signed restaurants.
from __future__ import annotations

from typing import Iterable, List, Protocol, Set


class StorageError(RuntimeError):
    """The backing store is unconfigured or rejected a request."""


def clean_place_ids(place_ids: Iterable[object]) -> List[str]:
    """Trimmed, non-empty string ids with duplicates collapsed, first occurrence kept."""
    seen: Set[str] = set()
    out: List[str] = []
    for raw in place_ids:
        if not isinstance(raw, str):
            continue
        pid = raw.strip()
        if pid and pid not in seen:
            seen.add(pid)
            out.append(pid)
    return out


class VisitedRepo(Protocol):
    """At most one (user, place_id) row; a missing row means not visited."""

    async def list_place_ids(self, user: str) -> List[str]:
        ...

    async def set_visited(self, user: str, place_id: str, visited: bool) -> None:
        ...

    async def import_place_ids(self, user: str, place_ids: Iterable[str]) -> int:
        """Upsert on (user, place_id). Returns how many ids were submitted."""
        ...


class SignedRepo(Protocol):
    async def signed_among(self, place_ids: Iterable[str]) -> Set[str]:
        ...

    async def is_signed(self, place_id: str) -> bool:
        ...
