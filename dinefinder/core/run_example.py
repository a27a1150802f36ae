from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path
from dotenv import load_dotenv

from dinefinder.client.session import ScanSession, ScanTarget, orchestrator_fetcher
from dinefinder.core.orchestrator import ScanOrchestrator
from dinefinder.providers.google_places import GooglePlacesProvider, GooglePlacesConfig


async def main(query: str):
    repo_root = Path(__file__).resolve().parents[2]
    load_dotenv(repo_root / ".env", override=False)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    api_key = os.getenv("GOOGLE_MAPS_API_KEY", "")
    if not api_key:
        raise ValueError(
            "GOOGLE_MAPS_API_KEY is not set. "
            "Add it to the repo root .env or export it in the shell."
        )
    cfg = GooglePlacesConfig(api_key=api_key, language_code="zh-TW", region_code="TW")
    async with GooglePlacesProvider(cfg) as provider:
        session = ScanSession(orchestrator_fetcher(ScanOrchestrator(provider)))
        await session.start(ScanTarget(query=query, radius_km=2))
        # first ring only, to keep the example cheap
        await session.scan_all(max_pages=12)

        acc = session.accumulator
        print(f"Scanned up to index {acc.cursor - 1}, {len(acc)} restaurants (has_more={acc.has_more})")
        for r in acc.results:
            price = r.price_level.value if r.price_level else "-"
            print(f"  {r.name} [{price}] reservable={r.reservable} {r.address}")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "中山區"))
