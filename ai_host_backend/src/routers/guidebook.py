"""Guidebook endpoints: process an owner's guidebook, or reprocess the stored one.

/reprocess is a single-hop proxy: it loads the stored guidebook and forwards it
to /process over HTTP, passing the caller's Cookie and Authorization headers
along so the downstream call runs under the same session.
"""
from __future__ import annotations

import logging
from typing import AsyncIterator, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from src.core.config import get_settings
from src.routers.auth import get_current_user
from src.models.auth import UserPublic
from src.models.domain import GuidebookProcessRequest, GuidebookProcessResult
from src.db import sqlite as sqlite_db
from src.services import guidebook as guidebook_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/guidebook", tags=["guidebook"])

PROCESS_PATH = "/api/guidebook/process"
# Request headers that carry the caller's session
SESSION_HEADERS = ("cookie", "authorization")


async def get_processor_client() -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client pointed at this service's own base URL."""
    settings = get_settings()
    async with httpx.AsyncClient(base_url=settings.site_url, timeout=settings.processor_timeout_seconds) as client:
        yield client


def _load_owned_property(property_id: str, user_id: str) -> Optional[Dict]:
    with sqlite_db.get_conn() as conn:
        return sqlite_db.property_get_owned(conn, property_id, user_id)


# PUBLIC_INTERFACE
@router.post(
    "/process",
    response_model=GuidebookProcessResult,
    response_model_by_alias=True,
    summary="Process guidebook",
    description="Store guidebook content on a property and build knowledge-base entries from it.",
)
def process_guidebook(payload: GuidebookProcessRequest, current: UserPublic = Depends(get_current_user)):
    """Process a guidebook for a property owned by the caller."""
    if not payload.property_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Property ID is required")
    try:
        return guidebook_service.process_guidebook(
            payload.property_id,
            current.id,
            payload.guidebook_content,
            payload.guidebook_url,
        )
    except guidebook_service.PropertyNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found or access denied")


# PUBLIC_INTERFACE
@router.post(
    "/reprocess",
    summary="Reprocess guidebook",
    description="Re-run guidebook processing on the content already stored for a property.",
)
async def reprocess_guidebook(
    request: Request,
    current: UserPublic = Depends(get_current_user),
    client: httpx.AsyncClient = Depends(get_processor_client),
):
    """Forward the stored guidebook to /process and relay its JSON result.

    Returns:
        The downstream JSON verbatim on success.
        400 if propertyId is missing or the stored guidebook is empty.
        401 if there is no session (the body is not read).
        404 if the property is absent or owned by someone else.
        500 if the downstream call fails or answers with a non-2xx status.
    """
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")
    property_id = body.get("propertyId") if isinstance(body, dict) else None
    if not property_id or not isinstance(property_id, str):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Property ID is required")

    prop = await run_in_threadpool(_load_owned_property, property_id, current.id)
    if not prop:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found or access denied")

    content = prop.get("guidebook_content") or ""
    if not content.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No guidebook content found for this property")

    headers = {name: request.headers[name] for name in SESSION_HEADERS if name in request.headers}
    try:
        downstream = await client.post(
            PROCESS_PATH,
            json={
                "propertyId": property_id,
                "guidebookContent": content,
                "guidebookUrl": prop.get("guidebook_url"),
            },
            headers=headers,
        )
    except httpx.HTTPError as exc:
        logger.warning("Guidebook reprocess forward failed for %s: %s", property_id, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to reprocess guidebook", "details": str(exc) or exc.__class__.__name__},
        )

    if not downstream.is_success:
        logger.warning("Guidebook processor answered %s for %s", downstream.status_code, property_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to process guidebook", "details": downstream.text},
        )

    try:
        result = downstream.json()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to reprocess guidebook", "details": "Processor returned a non-JSON body"},
        )
    return JSONResponse(content=result)
