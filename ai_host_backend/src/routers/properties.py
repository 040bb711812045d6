"""Property endpoints: owner create/list and the public guest lookup."""
from __future__ import annotations

import logging
import re
import secrets
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from src.routers.auth import get_current_user
from src.models.auth import UserPublic
from src.models.domain import Property, PropertyCreate, PropertyCreated, PropertyPublic, public_projection
from src.db import sqlite as sqlite_db
from src.services import guidebook as guidebook_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/properties", tags=["properties"])

# NUL and C0 control characters, keeping tab, newline and carriage return
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_text(text: Optional[str]) -> str:
    """Strip characters that break storage and rendering."""
    if not text:
        return ""
    return _CONTROL_CHARS.sub("", text)


def _new_property_id(conn) -> str:
    property_id = f"prop_{int(time.time() * 1000)}"
    while sqlite_db.property_exists(conn, property_id):
        property_id = f"prop_{int(time.time() * 1000)}_{secrets.token_hex(3)}"
    return property_id


def _process_in_background(property_id: str, user_id: str, content: str, url: Optional[str]) -> None:
    try:
        result = guidebook_service.process_guidebook(property_id, user_id, content, url)
    except Exception:
        logger.warning("Background guidebook processing failed for %s", property_id, exc_info=True)
        return
    logger.info("Background guidebook processing created %d entries for %s", result.knowledge_base_entries, property_id)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=PropertyCreated,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create property",
    description="Create an active property for the current owner.",
)
def create_property(
    payload: PropertyCreate,
    background_tasks: BackgroundTasks,
    current: UserPublic = Depends(get_current_user),
):
    """Create a property; a non-empty guidebook is processed after the response is sent."""
    fields = payload.model_dump()
    for key, value in fields.items():
        if isinstance(value, str):
            fields[key] = sanitize_text(value)
    if not fields["name"].strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Property name is required")

    now = datetime.now(timezone.utc).isoformat()
    with sqlite_db.get_conn() as conn:
        rec: Dict = {
            **fields,
            "id": _new_property_id(conn),
            "user_id": current.id,
            "status": "active",
            "created_at": now,
            "updated_at": now,
        }
        sqlite_db.property_insert(conn, rec)
    logger.info("Created property %s for user %s", rec["id"], current.id)

    content = rec.get("guidebook_content") or ""
    if content.strip():
        background_tasks.add_task(_process_in_background, rec["id"], current.id, content, rec.get("guidebook_url"))

    return PropertyCreated(property_id=rec["id"], data=Property(**rec))


# PUBLIC_INTERFACE
@router.get("", response_model=List[Property], summary="List my properties", description="List properties owned by the current user.")
def list_my_properties(current: UserPublic = Depends(get_current_user)):
    """List the caller's properties, newest first."""
    with sqlite_db.get_conn() as conn:
        rows = sqlite_db.property_list_owned(conn, current.id)
    return [Property(**r) for r in rows]


# PUBLIC_INTERFACE
@router.get(
    "/{property_id}",
    response_model=PropertyPublic,
    summary="Guest property lookup",
    description="Guest-facing fields of an active property. No authentication required.",
)
def get_property(property_id: str):
    """Return the public projection of an active property, or 404."""
    with sqlite_db.get_conn() as conn:
        rec = sqlite_db.property_get_active(conn, property_id)
    if not rec:
        logger.info("Property not found or inactive: %s", property_id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")
    return public_projection(rec)
