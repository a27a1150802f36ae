from __future__ import annotations

from ...providers.base import PlacesGateway
from ..fanout import DEFAULT_CONCURRENCY, enrich
from ..workflow_types import ScanContext


class EnrichDetailsNode:
    name = "enrich_details"

    def __init__(self, provider: PlacesGateway, concurrency_limit: int = DEFAULT_CONCURRENCY):
        self.provider = provider
        self.concurrency_limit = concurrency_limit

    async def run(self, ctx: ScanContext) -> ScanContext:
        if not ctx.place_ids:
            ctx.results = []
            return ctx

        enriched = await enrich(ctx.place_ids, self.provider.get_details, self.concurrency_limit)
        ctx.results = [r for r in enriched if r is not None]
        return ctx
