"""FastAPI application setup for Context Builder."""

from __future__ import annotations

from fastapi import FastAPI

from context_builder.api.dependencies import get_app_settings, get_context_assembler
from context_builder.api.routes_admin import router as admin_router
from context_builder.api.routes_context import router as context_router
from context_builder.core.logging import configure_from_settings

_settings = get_app_settings()
configure_from_settings(_settings)

app = FastAPI(
    title="Context Builder",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(context_router, prefix="", tags=["context"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons on startup."""
    get_context_assembler()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
