from __future__ import annotations

import logging

from ...providers.base import PlacesApiError, PlacesGateway
from ..errors import ScanError
from ..geo import compute_scan_center
from ..workflow_types import ScanContext

logger = logging.getLogger(__name__)


class NearbySearchNode:
    name = "nearby_search"

    def __init__(self, provider: PlacesGateway):
        self.provider = provider

    async def run(self, ctx: ScanContext) -> ScanContext:
        ctx.probe_center = compute_scan_center(ctx.base_center, ctx.cursor, ctx.radius_m)
        try:
            ctx.place_ids = await self.provider.nearby_search(ctx.probe_center, ctx.radius_m)
        except PlacesApiError as e:
            raise ScanError("places_search", f"Places API request failed: {e}") from e

        logger.info(
            "Scan index %d probe (%.6f, %.6f) r=%dm: %d candidates",
            ctx.cursor,
            ctx.probe_center.lat,
            ctx.probe_center.lng,
            ctx.radius_m,
            len(ctx.place_ids),
        )
        return ctx
