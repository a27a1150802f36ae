from __future__ import annotations

import logging

from ...providers.base import PlacesApiError, PlacesGateway
from ..errors import ScanError
from ..workflow_types import ScanContext

logger = logging.getLogger(__name__)


class ResolveCenterNode:
    name = "resolve_center"

    def __init__(self, provider: PlacesGateway):
        self.provider = provider

    async def run(self, ctx: ScanContext) -> ScanContext:
        if ctx.explicit_center is not None:
            ctx.base_center = ctx.explicit_center
            return ctx

        query = (ctx.request.query or "").strip()
        try:
            point = await self.provider.geocode(query)
        except PlacesApiError as e:
            raise ScanError("geocoding", f"Geocoding API request failed: {e}") from e
        if point is None:
            raise ScanError("geocoding", "Geocoding failed: ZERO_RESULTS")

        logger.info("Geocoded %r to (%.6f, %.6f)", query, point.lat, point.lng)
        ctx.base_center = point
        return ctx
