"""Guidebook processing: summarize an owner's guidebook into knowledge-base docs."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from src.db import sqlite as sqlite_db
from src.models.domain import GuidebookProcessResult
from src.services import ai_providers
from src.services.ai_providers import AIMessage

logger = logging.getLogger(__name__)

SUMMARY_QUESTION = "Property Guidebook Summary"
SUMMARY_FAILED = "Guidebook content available but summary generation failed"
NO_INFO_MARKER = "No specific information"
SUMMARY_CHARS = 4000
EXTRACT_CHARS = 3000

SUMMARY_SYSTEM_PROMPT = """You are analyzing a property guidebook for a vacation rental listing.
Extract key information that would be helpful for:
1. Answering guest questions
2. Providing property-specific recommendations
3. Check-in/check-out procedures
4. Local area information
5. House rules and amenities

Summarize the most important points that an AI host should remember when helping guests."""

# (question, focus keywords)
CATEGORIES = (
    ("Check-in instructions", "check-in, arrival, keys, access"),
    ("WiFi and internet", "wifi, internet, password, network"),
    ("House rules", "rules, quiet hours, smoking, pets"),
    ("Local recommendations", "restaurants, attractions, local area"),
    ("Amenities and facilities", "amenities, kitchen, laundry, parking"),
)


class PropertyNotFound(LookupError):
    """The property does not exist or is not owned by the caller."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _summarize(content: str) -> Optional[str]:
    """Return an AI summary, or None when no real provider produced one."""
    messages = [
        AIMessage(role="system", content=SUMMARY_SYSTEM_PROMPT),
        AIMessage(
            role="user",
            content=f"Please analyze this property guidebook and extract key information:\n\n{content[:SUMMARY_CHARS]}",
        ),
    ]
    try:
        response = ai_providers.generate_ai_response(messages, max_tokens=800, temperature=0.3)
    except Exception as exc:
        logger.warning("Guidebook summary generation failed: %s", exc)
        return None
    if response.provider == "fallback":
        return None
    return response.content


def _extract(content: str, question: str, focus: str) -> Optional[str]:
    messages = [
        AIMessage(
            role="system",
            content=(
                f'Extract information about "{question}" from this property guidebook.\n'
                f"Focus on: {focus}.\n"
                f'If no relevant information is found, respond with "{NO_INFO_MARKER} provided in guidebook."'
            ),
        ),
        AIMessage(role="user", content=f'Extract information about "{question}" from:\n\n{content[:EXTRACT_CHARS]}'),
    ]
    response = ai_providers.generate_ai_response(messages, max_tokens=300, temperature=0.2)
    if response.provider == "fallback" or NO_INFO_MARKER in response.content:
        return None
    return response.content


def _upsert_kb(property_id: str, user_id: str, question: str, answer: str) -> None:
    with sqlite_db.get_conn() as conn:
        existing = sqlite_db.kb_find_by_question(conn, property_id, question)
        if existing:
            sqlite_db.kb_update_answer(conn, existing["id"], answer, user_id)
            return
        sqlite_db.kb_insert(
            conn,
            {
                "id": f"kb_{uuid4().hex}",
                "property_id": property_id,
                "user_id": user_id,
                "question": question,
                "answer": answer,
                "created_at": _now(),
            },
        )


# PUBLIC_INTERFACE
def process_guidebook(
    property_id: str,
    user_id: str,
    guidebook_content: Optional[str],
    guidebook_url: Optional[str],
) -> GuidebookProcessResult:
    """Store a guidebook on a property and derive knowledge-base docs from it.

    Raises:
        PropertyNotFound: If the property is absent or not owned by user_id.
    """
    with sqlite_db.get_conn() as conn:
        if not sqlite_db.property_get_owned(conn, property_id, user_id):
            raise PropertyNotFound(property_id)

    content = guidebook_content or ""
    summary = ""
    real_summary: Optional[str] = None
    if content.strip():
        real_summary = _summarize(content)
        summary = real_summary if real_summary is not None else SUMMARY_FAILED

    with sqlite_db.get_conn() as conn:
        sqlite_db.property_update_guidebook(conn, property_id, content, guidebook_url or None, _now())

    entries = 0
    if real_summary is not None:
        _upsert_kb(property_id, user_id, SUMMARY_QUESTION, real_summary)
        entries += 1
        for question, focus in CATEGORIES:
            try:
                extracted = _extract(content, question, focus)
                if extracted:
                    _upsert_kb(property_id, user_id, question, extracted)
                    entries += 1
            except Exception as exc:
                logger.warning("Failed to extract %r for %s: %s", question, property_id, exc)

    logger.info("Processed guidebook for %s (%d knowledge-base entries)", property_id, entries)
    return GuidebookProcessResult(summary=summary, knowledge_base_entries=entries)
