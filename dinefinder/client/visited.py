from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Set

from ..storage.base import clean_place_ids

logger = logging.getLogger(__name__)


class LocalVisitedBackend:
    """Visited place ids kept in a JSON file; rewritten on every change."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Set[str]:
        if not self.path.exists():
            return set()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable visited file %s: %s", self.path, e)
            return set()
        return set(clean_place_ids(data if isinstance(data, list) else []))

    def save(self, place_ids: Iterable[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(sorted(place_ids), indent=2), encoding="utf-8")
        tmp.replace(self.path)


class CloudVisitedBackend(Protocol):
    """The signed-in user's visited set, e.g. a DineFinderClient."""

    async def visited_place_ids(self) -> List[str]:
        ...

    async def set_visited(self, place_id: str, visited: bool) -> None:
        ...

    async def import_visited(self, place_ids: Iterable[str]) -> int:
        ...


class VisitedMarks:
    """
    Visited flags for the current user.

    Signed out, marks live in the local file. Signed in, the cloud set is
    loaded once and each toggle is applied locally first, then rolled back
    if the server rejects it.
    """

    def __init__(self, local: LocalVisitedBackend, cloud: Optional[CloudVisitedBackend] = None):
        self.local = local
        self.cloud = cloud
        self.local_ids: Set[str] = local.load()
        self.cloud_ids: Set[str] = set()
        self.authenticated = False

    @property
    def active(self) -> Set[str]:
        return self.cloud_ids if self.authenticated else self.local_ids

    def is_visited(self, place_id: str) -> bool:
        return place_id in self.active

    async def on_login(self) -> None:
        if self.cloud is None:
            raise RuntimeError("no cloud backend configured")
        self.cloud_ids = set(await self.cloud.visited_place_ids())
        self.authenticated = True

    def on_logout(self) -> None:
        self.authenticated = False
        self.cloud_ids = set()

    async def set_visited(self, place_id: str, visited: bool) -> None:
        if not self.authenticated:
            self._apply(self.local_ids, place_id, visited)
            self.local.save(self.local_ids)
            return

        was_visited = place_id in self.cloud_ids
        self._apply(self.cloud_ids, place_id, visited)
        try:
            await self.cloud.set_visited(place_id, visited)
        except Exception:
            self._apply(self.cloud_ids, place_id, was_visited)
            logger.warning("Rolled back visited=%s for %s", visited, place_id)
            raise

    async def toggle(self, place_id: str) -> bool:
        visited = not self.is_visited(place_id)
        await self.set_visited(place_id, visited)
        return visited

    async def import_local_into_cloud(self) -> int:
        """Copy the local marks into the signed-in user's cloud set. Safe to repeat."""
        if not self.authenticated:
            raise RuntimeError("sign in before importing visited marks")
        ids = sorted(self.local_ids)
        if not ids:
            return 0
        imported = await self.cloud.import_visited(ids)
        self.cloud_ids.update(ids)
        return imported

    @staticmethod
    def _apply(ids: Set[str], place_id: str, visited: bool) -> None:
        if visited:
            ids.add(place_id)
        else:
            ids.discard(place_id)
