"""Liveness endpoint. AI provider health lives in routers.diagnostics."""
from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["health"])


# PUBLIC_INTERFACE
@router.get("/", summary="Liveness", description="Cheap liveness probe; does not touch the database or AI providers.", operation_id="health_check")
def health_check():
    """Return a static liveness status."""
    return {"status": "ok", "service": "ai-host-backend"}
