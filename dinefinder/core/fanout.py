from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONCURRENCY = 8


async def _fetch_or_none(place_id: str, fetch: Callable[[str], Awaitable[Optional[T]]]) -> Optional[T]:
    try:
        result = await fetch(place_id)
    except Exception as e:
        logger.warning("place_details: dropping %s after fetch failure: %s", place_id, e)
        return None
    if result is None:
        logger.warning("place_details: no details for %s", place_id)
    return result


async def enrich(
    place_ids: Sequence[str],
    fetch: Callable[[str], Awaitable[Optional[T]]],
    concurrency_limit: int = DEFAULT_CONCURRENCY,
) -> List[Optional[T]]:
    """
    Fetch details for every id, at most `concurrency_limit` at a time.

    Ids are split into consecutive batches; a batch runs concurrently and must
    fully settle before the next one starts. A failed fetch leaves None in its
    slot, so the output lines up with `place_ids`.
    """
    if concurrency_limit < 1:
        raise ValueError("concurrency_limit must be >= 1")

    results: List[Optional[T]] = []
    for start in range(0, len(place_ids), concurrency_limit):
        batch = place_ids[start:start + concurrency_limit]
        results.extend(await asyncio.gather(*(_fetch_or_none(pid, fetch) for pid in batch)))
    return results
