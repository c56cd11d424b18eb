"""Administrative routes for Context Builder."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from context_builder.api.dependencies import get_context_assembler
from context_builder.core.metrics import REQUEST_COUNT, metrics_response
from context_builder.models.dto import CompactResponse
from context_builder.retrieval import ContextAssembler

router = APIRouter()


@router.post("/cache/compact", response_model=CompactResponse, summary="Evict every cached entry")
def compact_cache(assembler: ContextAssembler = Depends(get_context_assembler)) -> CompactResponse:
    removed = assembler.clear_cache()
    REQUEST_COUNT.labels(endpoint="cache_compact", method="POST", status="200").inc()
    return CompactResponse(removed=removed)


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
