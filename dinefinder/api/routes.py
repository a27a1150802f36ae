from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from .deps import get_orchestrator, get_store
from .schemas import (
    ErrorResponse,
    LoginRequest,
    MeResponse,
    ResolveCandidate,
    ResolveResponse,
    SearchResponse,
    SearchResult,
    VisitedList,
    VisitedWrite,
    VisitedWriteResponse,
)
from ..core.auth import SESSION_USER_KEY, check_credentials, current_username, require_username
from ..core.config import Settings, get_settings
from ..core.orchestrator import ScanOrchestrator
from ..core.workflow_types import ScanRequest
from ..storage.base import StorageError, clean_place_ids

router = APIRouter()

STEP_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "Unknown place"},
    500: {"model": ErrorResponse, "description": "Configuration or upstream failure"},
}


@router.get("/search", response_model=SearchResponse, responses=STEP_ERRORS)
async def search(
    query: Optional[str] = None,
    lat: Optional[str] = None,
    lng: Optional[str] = None,
    radius_km: Optional[str] = Query(default=None, alias="radiusKm"),
    scan_index: Optional[str] = Query(default=None, alias="scanIndex"),
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
):
    req = ScanRequest(query=query, lat=lat, lng=lng, radius_km=radius_km, scan_index=scan_index)
    page = await orchestrator.fetch_page(req)
    return SearchResponse.from_page(page)


@router.get("/resolve", response_model=ResolveResponse, responses=STEP_ERRORS)
async def resolve(query: Optional[str] = None, orchestrator: ScanOrchestrator = Depends(get_orchestrator)):
    candidates = await orchestrator.resolve(query)
    return ResolveResponse(candidates=[ResolveCandidate.from_candidate(c) for c in candidates])


@router.get("/place", response_model=SearchResult, responses=STEP_ERRORS)
async def place(
    place_id: Optional[str] = Query(default=None, alias="placeId"),
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
):
    return SearchResult.from_result(await orchestrator.place(place_id))


def _require_store(store):
    if store is None:
        raise HTTPException(status_code=500, detail="DB is not configured")
    return store


@router.get("/visited", response_model=VisitedList)
async def read_visited(username: str = Depends(require_username), store=Depends(get_store)):
    store = _require_store(store)
    try:
        place_ids = await store.list_place_ids(username)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    return VisitedList(place_ids=place_ids)


@router.post("/visited", response_model=VisitedWriteResponse, response_model_exclude_none=True)
async def write_visited(body: VisitedWrite, username: str = Depends(require_username), store=Depends(get_store)):
    store = _require_store(store)
    if body.place_ids is not None:
        if not isinstance(body.place_ids, list):
            raise HTTPException(status_code=400, detail="Invalid payload")
        try:
            imported = await store.import_place_ids(username, clean_place_ids(body.place_ids))
        except StorageError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        return VisitedWriteResponse(imported=imported)

    place_id = body.place_id.strip() if isinstance(body.place_id, str) else ""
    if not place_id or not isinstance(body.visited, bool):
        raise HTTPException(status_code=400, detail="Invalid payload")
    try:
        await store.set_visited(username, place_id, body.visited)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    return VisitedWriteResponse()


@router.post("/auth/login")
async def login(body: LoginRequest, request: Request, settings: Settings = Depends(get_settings)):
    if not body.username or not body.password:
        raise HTTPException(status_code=400, detail="Missing username/password")
    if not check_credentials(body.username, body.password, settings):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session[SESSION_USER_KEY] = body.username
    return {"ok": True}


@router.post("/auth/logout")
async def logout(request: Request):
    request.session.clear()
    return {"ok": True}


@router.get("/auth/me", response_model=MeResponse, response_model_exclude_none=True)
async def me(request: Request):
    username = current_username(request)
    return MeResponse(authenticated=username is not None, username=username)
