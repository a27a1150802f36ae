import logging
from typing import AsyncIterator, Optional

from fastapi import Depends

from ..core.config import Settings, get_settings
from ..core.orchestrator import ScanOrchestrator
from ..providers.base import PlacesGateway
from ..providers.google_places import GooglePlacesConfig, GooglePlacesProvider
from ..storage.memory import MemoryStore
from ..storage.supabase import SupabaseConfig, SupabaseStore

logger = logging.getLogger(__name__)

_MEMORY_STORE = MemoryStore()


def places_config(settings: Settings) -> GooglePlacesConfig:
    return GooglePlacesConfig(
        api_key=settings.google_maps_api_key,
        language_code=settings.places_language_code or None,
        region_code=settings.places_region_code or None,
        timeout_s=settings.places_timeout_s,
        max_retries=settings.places_max_retries,
    )


async def get_places_provider(settings: Settings = Depends(get_settings)) -> AsyncIterator[Optional[PlacesGateway]]:
    if not settings.google_maps_api_key:
        yield None
        return
    async with GooglePlacesProvider(places_config(settings)) as provider:
        yield provider


async def get_store(settings: Settings = Depends(get_settings)) -> AsyncIterator[Optional[SupabaseStore | MemoryStore]]:
    """Backs both the visited and the signed relations; None when unconfigured."""
    if settings.visited_backend == "memory":
        yield _MEMORY_STORE
        return
    if settings.visited_backend != "supabase":
        logger.warning("Unknown VISITED_BACKEND %r", settings.visited_backend)
        yield None
        return
    if not (settings.supabase_url and settings.supabase_service_role_key):
        yield None
        return
    cfg = SupabaseConfig(url=settings.supabase_url, service_role_key=settings.supabase_service_role_key)
    async with SupabaseStore(cfg) as store:
        yield store


def get_orchestrator(
    provider: Optional[PlacesGateway] = Depends(get_places_provider),
    store=Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> ScanOrchestrator:
    return ScanOrchestrator(provider, signed_repo=store, concurrency_limit=settings.details_concurrency)
