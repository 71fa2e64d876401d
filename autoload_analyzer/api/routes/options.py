"""Option routes: grouped listing, autoload toggles, deletion (single and bulk)."""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from autoload_analyzer.engine import BulkResult, Direction, OptionListing
from autoload_analyzer.errors import AuthorizationError, ValidationError
from autoload_analyzer.store import Autoload

logger = logging.getLogger(__name__)

router = APIRouter()

# Upper bound on names per bulk request
MAX_BULK_NAMES = 1000


# --- Pydantic models ---

class ToggleRequest(BaseModel):
    action: Direction


class BulkToggleRequest(BaseModel):
    names: list[str]
    action: Direction


class BulkDeleteRequest(BaseModel):
    names: list[str]


class ToggleResponse(BaseModel):
    name: str
    autoload: Autoload
    message: str


class DeleteResponse(BaseModel):
    name: str
    deleted: bool
    message: str


# --- Helpers ---

def require_admin(request: Request) -> None:
    """Dependency: refuse the request unless the caller is an admin."""
    gate = getattr(request.app.state, "gate", None)
    if gate is None or not gate.has_admin_capability(request):
        raise AuthorizationError("You do not have permission to manage options")


def _unavailable() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": {"message": "Database unavailable", "code": "DB_UNAVAILABLE"}},
    )


def _check_bulk_names(names: list[str]) -> None:
    if not names:
        raise ValidationError("No option names given")
    if len(names) > MAX_BULK_NAMES:
        raise ValidationError(f"Maximum {MAX_BULK_NAMES} options per request")


def _bulk_response(result: BulkResult):
    """Return the result as-is, or a 409 envelope when nothing succeeded."""
    if result.ok:
        return result
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "error": {"message": result.message, "code": "NO_CHANGES"},
            "result": result.model_dump(mode="json"),
        },
    )


# --- Routes (static paths BEFORE parameterized /{name}) ---

@router.get("/options", response_model=OptionListing)
async def list_options(request: Request, autoload: Autoload = Autoload.LOAD):
    """Options with the given autoload flag, grouped by source, largest first."""
    manager = getattr(request.app.state, "manager", None)
    if manager is None:
        return _unavailable()
    return manager.list_by_autoload(autoload)


@router.post(
    "/options/bulk-autoload",
    response_model=BulkResult,
    dependencies=[Depends(require_admin)],
)
async def bulk_toggle(body: BulkToggleRequest, request: Request):
    """Enable or disable autoload for many options at once."""
    manager = getattr(request.app.state, "manager", None)
    if manager is None:
        return _unavailable()

    _check_bulk_names(body.names)
    return _bulk_response(manager.bulk_toggle_autoload(body.names, body.action))


@router.post(
    "/options/bulk-delete",
    response_model=BulkResult,
    dependencies=[Depends(require_admin)],
)
async def bulk_delete(body: BulkDeleteRequest, request: Request):
    """Delete many options. Options still autoloaded are skipped."""
    manager = getattr(request.app.state, "manager", None)
    if manager is None:
        return _unavailable()

    _check_bulk_names(body.names)
    return _bulk_response(manager.bulk_delete_options(body.names))


@router.post(
    "/options/{name}/autoload",
    response_model=ToggleResponse,
    dependencies=[Depends(require_admin)],
)
async def toggle_option(name: str, body: ToggleRequest, request: Request):
    """Enable or disable autoload for one option."""
    manager = getattr(request.app.state, "manager", None)
    if manager is None:
        return _unavailable()

    message = manager.toggle_autoload(name, body.action)
    return ToggleResponse(name=name.strip(), autoload=body.action.target, message=message)


@router.delete(
    "/options/{name}",
    response_model=DeleteResponse,
    dependencies=[Depends(require_admin)],
)
async def delete_option(name: str, request: Request):
    """Delete one option whose autoload is disabled."""
    manager = getattr(request.app.state, "manager", None)
    if manager is None:
        return _unavailable()

    message = manager.delete_option(name)
    return DeleteResponse(name=name.strip(), deleted=True, message=message)
