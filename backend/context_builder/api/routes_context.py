"""Context building routes."""

from __future__ import annotations

import time

from fastapi import APIRouter, Depends

from context_builder.api.dependencies import get_context_assembler
from context_builder.core.metrics import REQUEST_COUNT, REQUEST_LATENCY
from context_builder.models.dto import ContextRequest, ContextResponse
from context_builder.retrieval import ContextAssembler

router = APIRouter()


@router.post("/context", response_model=ContextResponse, summary="Build a context for a query")
def build_context(
    request: ContextRequest,
    assembler: ContextAssembler = Depends(get_context_assembler),
) -> ContextResponse:
    start_time = time.perf_counter()
    documents = [document.to_entity() for document in request.documents]
    result = assembler.build(documents, request.query)
    REQUEST_LATENCY.labels(endpoint="context", method="POST").observe(time.perf_counter() - start_time)
    REQUEST_COUNT.labels(endpoint="context", method="POST", status="200").inc()
    return ContextResponse(context=result.text, tier=result.tier, cached=result.cached)


__all__ = ["router"]
