"""AI diagnostics endpoint."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from src.services import ai_diagnostics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai-diagnostics", tags=["diagnostics"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# PUBLIC_INTERFACE
@router.get("", summary="AI diagnostics", description="Probe the AI providers and summarize their status.")
def ai_diagnostics_report():
    """Run the AI health check once and wrap it in a success envelope.

    Any failure is reported as a 500 envelope; there is no retry.
    """
    logger.info("AI diagnostics requested")
    try:
        health_check = ai_diagnostics.run_ai_health_check()
        summary = ai_diagnostics.get_service_summary(health_check)
    except Exception as exc:
        logger.exception("AI diagnostics failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(exc) or "Unknown error", "timestamp": _timestamp()},
        )
    return {
        "success": True,
        "healthCheck": health_check.model_dump(by_alias=True, exclude_none=True),
        "summary": summary,
        "timestamp": _timestamp(),
    }


router.add_api_route(
    "",
    ai_diagnostics_report,
    methods=["POST"],
    summary="AI diagnostics (POST)",
    description="Same as GET.",
    operation_id="ai_diagnostics_report_post",
)
