from __future__ import annotations

import logging
from typing import Optional

from ...storage.base import SignedRepo
from ..workflow_types import ScanContext

logger = logging.getLogger(__name__)


class SignedAnnotationNode:
    """Flags results found in the signed-restaurants relation. Never fails the page."""

    name = "signed_annotation"

    def __init__(self, repo: Optional[SignedRepo]):
        self.repo = repo

    async def run(self, ctx: ScanContext) -> ScanContext:
        if self.repo is None or not ctx.results:
            return ctx
        try:
            signed = await self.repo.signed_among([r.place_id for r in ctx.results])
        except Exception as e:
            # lookup failure is indistinguishable from "not signed" downstream
            logger.warning("Signed lookup failed, leaving all results unsigned: %s", e)
            return ctx
        ctx.results = [r.with_signed(r.place_id in signed) for r in ctx.results]
        return ctx
