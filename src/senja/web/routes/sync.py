"""Remote sync endpoints."""

from fastapi import APIRouter, Depends

from senja.core.engine import Engine, get_engine
from senja.web.schemas import (
    ApiUrlRequest,
    ApiUrlResponse,
    SyncEventResponse,
    SyncPullResponse,
    SyncStatusResponse,
)

router = APIRouter(prefix="/api/sync", tags=["sync"])


@router.get("/api-url", response_model=ApiUrlResponse)
async def get_api_url(engine: Engine = Depends(get_engine)) -> ApiUrlResponse:
    url = engine.get_api_url()
    return ApiUrlResponse(url=url, enabled=bool(url))


@router.put("/api-url", response_model=ApiUrlResponse)
async def put_api_url(
    body: ApiUrlRequest, engine: Engine = Depends(get_engine)
) -> ApiUrlResponse:
    """Change the spreadsheet endpoint; a non-empty URL triggers a full pull."""
    engine.set_api_url(body.url)
    url = engine.get_api_url()
    return ApiUrlResponse(url=url, enabled=bool(url))


@router.post("/pull", response_model=SyncPullResponse)
async def pull(engine: Engine = Depends(get_engine)) -> SyncPullResponse:
    """Pull every table from the remote now and wait for the result."""
    applied = await engine.sync_all_from_cloud()
    return SyncPullResponse(applied=applied)


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(engine: Engine = Depends(get_engine)) -> SyncStatusResponse:
    """Gateway state and the most recent sync outcomes."""
    recent = list(engine.gateway.history)[-20:]
    return SyncStatusResponse(
        enabled=engine.gateway.enabled,
        pending=engine.tasks.pending,
        recent=[SyncEventResponse(**event.to_dict()) for event in recent],
    )
