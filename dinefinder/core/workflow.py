from __future__ import annotations

import logging
from typing import List

from .workflow_types import ScanContext

logger = logging.getLogger(__name__)


class WorkflowRunner:
    def __init__(self, nodes: List):
        self.nodes = nodes

    async def run(self, ctx: ScanContext) -> ScanContext:
        for node in self.nodes:
            logger.debug("Running node %s", node.name)
            ctx = await node.run(ctx)
        return ctx
