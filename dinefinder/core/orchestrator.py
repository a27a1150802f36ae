from __future__ import annotations

import logging
from typing import List, Optional

from ..providers.base import Candidate, EnrichedResult, PlacesApiError, PlacesGateway
from ..storage.base import SignedRepo
from .errors import ScanError
from .fanout import DEFAULT_CONCURRENCY
from .nodes.assemble import AssemblePageNode
from .nodes.center import ResolveCenterNode
from .nodes.details import EnrichDetailsNode
from .nodes.nearby import NearbySearchNode
from .nodes.signed import SignedAnnotationNode
from .nodes.validate import ValidateRequestNode
from .workflow import WorkflowRunner
from .workflow_types import ScanContext, ScanPage, ScanRequest

logger = logging.getLogger(__name__)

RESOLVE_MAX_CANDIDATES = 5


class ScanOrchestrator:
    """
    Serves one page of the ring scan per call.

    Validation, center resolution and the nearby search fail fast with a
    step-tagged ScanError; detail enrichment and the signed lookup degrade
    per result instead.
    """

    def __init__(
        self,
        provider: Optional[PlacesGateway],
        signed_repo: Optional[SignedRepo] = None,
        concurrency_limit: int = DEFAULT_CONCURRENCY,
    ):
        self.provider = provider
        self.signed_repo = signed_repo
        self.concurrency_limit = concurrency_limit

    def _require_provider(self) -> PlacesGateway:
        if self.provider is None:
            raise ScanError("config", "GOOGLE_MAPS_API_KEY is not configured")
        return self.provider

    def _page_runner(self) -> WorkflowRunner:
        nodes: list = [ValidateRequestNode(provider_configured=self.provider is not None)]
        if self.provider is not None:
            nodes += [
                ResolveCenterNode(self.provider),
                NearbySearchNode(self.provider),
                EnrichDetailsNode(self.provider, self.concurrency_limit),
                SignedAnnotationNode(self.signed_repo),
                AssemblePageNode(),
            ]
        return WorkflowRunner(nodes=nodes)

    async def fetch_page(self, request: ScanRequest) -> ScanPage:
        try:
            ctx = await self._page_runner().run(ScanContext(request=request))
        except ScanError:
            raise
        except Exception as e:
            logger.exception("Unexpected failure while scanning")
            raise ScanError("unknown", str(e) or type(e).__name__) from e

        page = ctx.page
        logger.info(
            "Served scan index %d: %d results (has_more=%s)", page.cursor, len(page.results), page.has_more
        )
        return page

    async def resolve(self, query: Optional[str]) -> List[Candidate]:
        provider = self._require_provider()
        text = (query or "").strip()
        if not text:
            raise ScanError("validation", "query parameter is required")
        try:
            return await provider.text_search_candidates(text, max_results=RESOLVE_MAX_CANDIDATES)
        except PlacesApiError as e:
            raise ScanError("places_search", f"Places API request failed: {e}") from e

    async def place(self, place_id: Optional[str]) -> EnrichedResult:
        provider = self._require_provider()
        pid = (place_id or "").strip()
        if not pid:
            raise ScanError("validation", "placeId parameter is required")
        try:
            result = await provider.get_details(pid)
        except PlacesApiError as e:
            raise ScanError("place_details", f"Place Details failed: {e}") from e
        if result is None:
            raise ScanError("place_details", f"Place {pid} not found", status_code=404)

        if self.signed_repo is None:
            return result
        try:
            signed = await self.signed_repo.is_signed(pid)
        except Exception as e:
            logger.warning("Signed lookup for %s failed, reporting it unsigned: %s", pid, e)
            signed = False
        return result.with_signed(signed)
