"""Settings and session endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status

from senja.core.engine import Engine, get_engine

router = APIRouter(prefix="/api", tags=["settings"])


@router.get("/settings")
async def get_settings(engine: Engine = Depends(get_engine)) -> dict[str, Any]:
    """Current settings, or the configured defaults."""
    return engine.settings.get()


@router.put("/settings")
async def put_settings(
    settings: dict[str, Any], engine: Engine = Depends(get_engine)
) -> dict[str, Any]:
    """Overwrite the singleton settings record."""
    return engine.settings.save(settings)


@router.get("/session")
async def get_session(engine: Engine = Depends(get_engine)) -> dict[str, Any]:
    """Current signed-in identity."""
    session = engine.session.get()
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active session",
        )
    return session


@router.put("/session")
async def put_session(
    identity: dict[str, Any], engine: Engine = Depends(get_engine)
) -> dict[str, Any]:
    engine.session.set(identity)
    return identity


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(engine: Engine = Depends(get_engine)) -> Response:
    engine.session.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
