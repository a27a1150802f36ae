from __future__ import annotations

from ..geo import MAX_SCAN_INDEX
from ..workflow_types import ScanContext, ScanPage


class AssemblePageNode:
    name = "assemble_page"

    async def run(self, ctx: ScanContext) -> ScanContext:
        ctx.page = ScanPage(
            center=ctx.base_center,
            radius_m=ctx.radius_m,
            results=list(ctx.results),
            cursor=ctx.cursor,
            next_cursor=ctx.cursor + 1,
            has_more=ctx.cursor < MAX_SCAN_INDEX,
        )
        return ctx
