"""System routes: health and version."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    db: bool


class VersionResponse(BaseModel):
    current: str


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Health check. Returns settings store availability."""
    store = getattr(request.app.state, "store", None)
    return HealthResponse(status="ok", db=store is not None)


@router.get("/version", response_model=VersionResponse)
def get_version():
    """Installed analyzer version."""
    from autoload_analyzer import __version__

    return VersionResponse(current=__version__)
