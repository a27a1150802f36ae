"""Caller-side merge of scan pages into one de-duplicated result list."""
from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional, Set

from ..core.workflow_types import ScanPage
from ..providers.base import EnrichedResult, GeoPoint, PriceLevel


class ScanStatus(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    EXHAUSTED = "exhausted"


class ResultAccumulator:
    """
    Holds the results of one scan session in first-seen order, keyed by place id.

    Each `begin()` opens a new session and hands out a token; pages fetched
    under an older token can be recognised with `is_current` and dropped.
    Entries are only ever appended within a session.
    """

    def __init__(self):
        self.token = 0
        self.reset()

    def reset(self) -> None:
        self.status = ScanStatus.IDLE
        self.results: List[EnrichedResult] = []
        self._seen: Set[str] = set()
        self.cursor = 0
        self.has_more = True
        self.last_added = 0
        self.center: Optional[GeoPoint] = None
        self.radius_m: Optional[int] = None

    def begin(self) -> int:
        self.reset()
        self.token += 1
        self.status = ScanStatus.SCANNING
        return self.token

    def is_current(self, token: int) -> bool:
        return token == self.token and self.status is not ScanStatus.IDLE

    @property
    def can_request_more(self) -> bool:
        return self.status is ScanStatus.SCANNING and self.has_more

    def append_page(self, page: ScanPage) -> int:
        """Merge a page and return how many of its results were new."""
        if self.status is not ScanStatus.SCANNING:
            raise RuntimeError(f"cannot append a page while {self.status.value}")

        added = 0
        for result in page.results:
            if result.place_id in self._seen:
                continue
            self._seen.add(result.place_id)
            self.results.append(result)
            added += 1

        if self.center is None:
            self.center = page.center
            self.radius_m = page.radius_m
        self.last_added = added
        self.cursor = page.next_cursor
        self.has_more = page.has_more
        if not page.has_more:
            self.status = ScanStatus.EXHAUSTED
        return added

    def __len__(self) -> int:
        return len(self.results)

    def __contains__(self, place_id: object) -> bool:
        return place_id in self._seen

    def filtered(
        self,
        *,
        reservable_only: bool = False,
        price_levels: Optional[Iterable[PriceLevel]] = None,
    ) -> List[EnrichedResult]:
        allowed = set(price_levels) if price_levels is not None else None
        out = []
        for r in self.results:
            if reservable_only and not r.reservable:
                continue
            if allowed is not None and r.price_level not in allowed:
                continue
            out.append(r)
        return out
