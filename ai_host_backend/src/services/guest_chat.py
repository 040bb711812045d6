"""Guest chat: answer guest questions from a property's details and knowledge base."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from src.db import sqlite as sqlite_db
from src.models.domain import ChatReply, KbDoc
from src.services import ai_providers
from src.services.ai_providers import AIMessage

logger = logging.getLogger(__name__)

CHAT_MODEL = "gpt-4o-mini"
CHAT_MAX_TOKENS = 400
CHAT_TEMPERATURE = 0.3

# (column, label, text used when the owner left it empty)
PROPERTY_LINES = (
    ("wifi_name", "WiFi Network", "Please ask your host for WiFi details"),
    ("wifi_password", "WiFi Password", "Please ask your host for the WiFi password"),
    ("check_in_instructions", "Check-in Instructions", "Refer to your booking confirmation"),
    ("trash_day", "Trash Collection", "Please ask your host about the trash collection schedule"),
    ("quiet_hours", "Quiet Hours", "Please be considerate of neighbors, especially after 10 PM"),
)


class ChatPropertyNotFound(LookupError):
    """No active property with this id, and the caller does not own one."""


def load_chat_property(property_id: str, viewer_id: Optional[str] = None) -> Dict:
    """Return the property a chat is about.

    Guests may chat with active properties only. The owner may also chat with
    an inactive one, to try the assistant before publishing it.

    Raises:
        ChatPropertyNotFound: If neither lookup finds the property.
    """
    with sqlite_db.get_conn() as conn:
        rec = sqlite_db.property_get_active(conn, property_id)
        if rec is None and viewer_id:
            rec = sqlite_db.property_get_owned(conn, property_id, viewer_id)
    if rec is None:
        raise ChatPropertyNotFound(property_id)
    return rec


def load_kb_docs(property_id: str) -> List[KbDoc]:
    with sqlite_db.get_conn() as conn:
        return [KbDoc(**row) for row in sqlite_db.kb_list_for_property(conn, property_id)]


def knowledge_context(docs: List[KbDoc]) -> str:
    return "\n\n".join(f"Q: {doc.question}\nA: {doc.answer}" for doc in docs)


def build_system_prompt(prop: Dict, docs: List[KbDoc]) -> str:
    """Assemble the assistant prompt from property fields and knowledge-base docs."""
    lines = [f"- Property Name: {prop['name']}"]
    for column, label, default in PROPERTY_LINES:
        lines.append(f"- {label}: {prop.get(column) or default}")
    if prop.get("checkin_video_url"):
        lines.append("- Check-in Video Available: offer the guest the check-in video tutorial")

    persona = prop.get("persona_style")
    voice = f"Speak in a {persona} style while staying accurate.\n" if persona else ""

    return (
        f'You are a professional AI guest assistant for "{prop["name"]}". '
        "You are knowledgeable, helpful, and focused on ensuring guests have an excellent stay.\n"
        f"{voice}\n"
        "PROPERTY INFORMATION:\n"
        + "\n".join(lines)
        + "\n\nPROPERTY KNOWLEDGE BASE:\n"
        + (knowledge_context(docs) or "(no entries yet)")
        + "\n\nGUIDELINES:\n"
        "- For WiFi questions give the network name and password from the property information.\n"
        "- For check-in and check-out, use the property-specific instructions.\n"
        "- For emergencies, suggest contacting the host or local emergency services.\n"
        "- When information is unavailable, offer to have the host contact the guest. "
        "Never make up addresses or phone numbers."
    )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# PUBLIC_INTERFACE
def answer_guest(message: str, prop: Dict, docs: List[KbDoc]) -> ChatReply:
    """Answer one guest message. Provider failures produce the offline reply with fallback=True."""
    messages = [
        AIMessage(role="system", content=build_system_prompt(prop, docs)),
        AIMessage(role="user", content=message),
    ]
    try:
        response = ai_providers.generate_ai_response(
            messages, max_tokens=CHAT_MAX_TOKENS, temperature=CHAT_TEMPERATURE, model=CHAT_MODEL
        )
    except Exception:
        logger.exception("Guest chat generation failed for %s", prop["id"])
        return ChatReply(response=ai_providers.fallback_reply(message), timestamp=_now(), fallback=True)

    logger.info("Guest chat answered by %s (%s) for %s", response.provider, response.model, prop["id"])
    if response.provider == "fallback":
        return ChatReply(response=response.content, timestamp=_now(), fallback=True)
    return ChatReply(response=response.content, timestamp=_now())
