from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from ..core.orchestrator import ScanOrchestrator
from ..core.workflow_types import ScanPage, ScanRequest
from ..providers.base import EnrichedResult, GeoPoint
from .accumulator import ResultAccumulator, ScanStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanTarget:
    """What to scan around: a free-text place or an explicit coordinate (which wins)."""
    query: Optional[str] = None
    center: Optional[GeoPoint] = None
    radius_km: float = 5.0


PageFetcher = Callable[[ScanTarget, int], Awaitable[ScanPage]]


def orchestrator_fetcher(orchestrator: ScanOrchestrator) -> PageFetcher:
    """Serve pages in-process instead of over HTTP."""

    async def fetch(target: ScanTarget, cursor: int) -> ScanPage:
        center = target.center
        return await orchestrator.fetch_page(
            ScanRequest(
                query=target.query,
                lat=center.lat if center else None,
                lng=center.lng if center else None,
                radius_km=target.radius_km,
                scan_index=cursor,
            )
        )

    return fetch


class ScanSession:
    """
    Drives a ResultAccumulator page by page, one fetch at a time.

    A second request while a page is in flight is a no-op. Starting a new
    target does not cancel the old fetch; its page is discarded on arrival.
    """

    def __init__(self, fetch_page: PageFetcher):
        self.fetch_page = fetch_page
        self.accumulator = ResultAccumulator()
        self.target: Optional[ScanTarget] = None
        self.last_error: Optional[Exception] = None
        self._in_flight_token: Optional[int] = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight_token is not None and self._in_flight_token == self.accumulator.token

    @property
    def results(self) -> List[EnrichedResult]:
        return self.accumulator.results

    @property
    def exhausted(self) -> bool:
        return self.accumulator.status is ScanStatus.EXHAUSTED

    def reset(self) -> None:
        self.accumulator.reset()
        self.target = None
        self.last_error = None

    async def start(self, target: ScanTarget) -> Optional[int]:
        """Open a new session for `target` and fetch its first page."""
        if target.query is None and target.center is None:
            raise ValueError("ScanTarget needs a query or a center")
        self.target = target
        self.last_error = None
        token = self.accumulator.begin()
        return await self._fetch(token, target, 0)

    async def request_next_page(self) -> Optional[int]:
        """Fetch the next page; returns the net-new count, or None if nothing was merged."""
        if self.accumulator.status is not ScanStatus.SCANNING or self.in_flight:
            return None
        return await self._fetch(self.accumulator.token, self.target, self.accumulator.cursor)

    async def scan_all(self, max_pages: Optional[int] = None) -> List[EnrichedResult]:
        pages = 0
        while self.accumulator.can_request_more and (max_pages is None or pages < max_pages):
            if await self.request_next_page() is None:
                break
            pages += 1
        return self.results

    async def _fetch(self, token: int, target: ScanTarget, cursor: int) -> Optional[int]:
        self._in_flight_token = token
        try:
            page = await self.fetch_page(target, cursor)
        except Exception as e:
            if not self.accumulator.is_current(token):
                logger.debug("Ignoring failure of stale scan session %d: %s", token, e)
                return None
            self.last_error = e
            raise
        finally:
            if self._in_flight_token == token:
                self._in_flight_token = None

        if not self.accumulator.is_current(token):
            logger.debug("Discarding page %d of stale scan session %d", page.cursor, token)
            return None
        self.last_error = None
        added = self.accumulator.append_page(page)
        logger.info(
            "Scan page %d merged: %d new, %d total (has_more=%s)",
            page.cursor,
            added,
            len(self.accumulator),
            page.has_more,
        )
        return added
