"""Analysis API endpoints.

Builds the dependency graph of a root file without changing the
selection.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from smart_select.config import MAX_DEPTH, MIN_DEPTH, AnalysisConfig

router = APIRouter()


# Request/Response models
class AnalysisOptions(BaseModel):
    """Per-request overrides of the configured analysis options."""

    enabled: bool | None = None
    max_depth: int | None = Field(default=None, ge=MIN_DEPTH, le=MAX_DEPTH)
    unlimited_depth: bool | None = None
    include_tests: bool | None = None
    test_file_patterns: list[str] | None = None
    exclusion_patterns: list[str] | None = None
    exclude_third_party: bool | None = None
    respect_ignore_file: bool | None = None
    source_extensions: list[str] | None = None

    def merge_into(self, base: AnalysisConfig) -> AnalysisConfig:
        """Apply the fields that were set on top of a base configuration."""
        overrides = self.model_dump(exclude_none=True)
        if not overrides:
            return base
        return AnalysisConfig(**{**base.model_dump(), **overrides})


class AnalyzeRequest(BaseModel):
    """Dependency analysis request."""

    root_path: str = Field(..., min_length=1, description="Root file to analyze")
    config: AnalysisOptions | None = Field(default=None, description="Option overrides")


class AnalyzeResponse(BaseModel):
    """Dependency analysis response."""

    root_path: str
    node_count: int
    edge_count: int
    partial: bool
    graph: dict[str, Any]


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
@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_root(
    request: AnalyzeRequest,
    service=Depends(get_service),
) -> AnalyzeResponse:
    """Build the dependency graph of a root file.

    Partial graphs (truncated, timed out) are returned with ``partial``
    set rather than as errors.
    """
    config = request.config.merge_into(service.config) if request.config else None
    graph = await service.analyze(request.root_path, config)
    return AnalyzeResponse(
        root_path=next(iter(graph.roots)),
        node_count=graph.node_count,
        edge_count=graph.edge_count,
        partial=graph.is_partial,
        graph=graph.to_dict(),
    )
