"""Guest chat endpoint."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from src.routers.auth import get_optional_user
from src.models.auth import UserPublic
from src.models.domain import ChatReply, ChatRequest
from src.services import guest_chat

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=ChatReply,
    response_model_exclude_none=True,
    summary="Guest chat",
    description="Answer a guest question using the property's details and knowledge base. No authentication required.",
)
def chat(payload: ChatRequest, viewer: Optional[UserPublic] = Depends(get_optional_user)):
    """Answer a guest message.

    Returns:
        200 with {response, timestamp} and fallback=true when the offline reply was used.
        400 if message or propertyId is missing.
        404 if the property is not active and the caller does not own it.
    """
    message = (payload.message or "").strip()
    if not message or not payload.property_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required parameters")

    try:
        prop = guest_chat.load_chat_property(payload.property_id, viewer.id if viewer else None)
    except guest_chat.ChatPropertyNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")

    docs = guest_chat.load_kb_docs(prop["id"])
    logger.info("Guest chat for %s (session %s, %d kb docs)", prop["id"], payload.session_id or "-", len(docs))
    return guest_chat.answer_guest(message, prop, docs)
