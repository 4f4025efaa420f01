"""Selection API endpoints.

Adds and removes root files and reports the resulting auto-selection.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from smart_select.api.endpoints.analyze import AnalysisOptions

router = APIRouter()


# Request/Response models
class SelectRootRequest(BaseModel):
    """Request to select a root file."""

    root_path: str = Field(..., min_length=1, description="Root file to select")
    config: AnalysisOptions | None = Field(default=None, description="Option overrides")


class DeselectRootRequest(BaseModel):
    """Request to deselect a root file."""

    root_path: str = Field(..., min_length=1, description="Root file to deselect")


class SelectionUpdateResponse(BaseModel):
    """Change to the auto-selection."""

    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    metadata: dict[str, dict[str, Any]] = Field(default_factory=dict)
    superseded: bool = False


class SelectionStateResponse(BaseModel):
    """Current selection."""

    manual_roots: list[str]
    auto_selected: dict[str, dict[str, Any]]
    total: int


# Dependency placeholders
_service = None


def get_service():
    """Get smart select service instance."""
    if _service is None:
        raise HTTPException(status_code=503, detail="Smart select service not initialized")
    return _service


def set_service(service):
    """Set smart select service instance."""
    global _service
    _service = service


# Endpoints
@router.post("/selection/roots", response_model=SelectionUpdateResponse)
async def select_root(
    request: SelectRootRequest,
    service=Depends(get_service),
) -> SelectionUpdateResponse:
    """Select a root and auto-select its dependencies and tests."""
    config = request.config.merge_into(service.config) if request.config else None
    update = await service.select_root(request.root_path, config)
    if update is None:
        return SelectionUpdateResponse(superseded=True)
    return SelectionUpdateResponse(**update.to_dict())


@router.delete("/selection/roots", response_model=SelectionUpdateResponse)
async def deselect_root(
    request: DeselectRootRequest,
    service=Depends(get_service),
) -> SelectionUpdateResponse:
    """Deselect a root; files still needed by other roots stay selected."""
    update = await service.deselect_root(request.root_path)
    return SelectionUpdateResponse(**update.to_dict())


@router.get("/selection", response_model=SelectionStateResponse)
async def get_selection(service=Depends(get_service)) -> SelectionStateResponse:
    """Get the manual roots and the current auto-selection."""
    snapshot = service.orchestrator.snapshot()
    return SelectionStateResponse(
        manual_roots=sorted(service.manual_roots),
        auto_selected=snapshot,
        total=len(snapshot),
    )


@router.post("/cache/reset")
async def reset_cache(service=Depends(get_service)) -> dict[str, str]:
    """Drop the alias table, ignore rules and cached import results."""
    service.reset_caches()
    return {"status": "reset"}
