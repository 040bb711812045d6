"""Domain DTOs for properties, guidebooks, and knowledge-base docs."""
from __future__ import annotations
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class PropertyCreate(BaseModel):
    """Owner-editable property fields."""
    name: str = Field(..., min_length=1, description="Property display name")
    persona_style: Optional[str] = Field(None, description="Virtual host persona style")
    wifi_name: Optional[str] = Field(None, description="WiFi network name")
    wifi_password: Optional[str] = Field(None, description="WiFi password")
    check_in_instructions: Optional[str] = Field(None, description="Check-in instructions")
    trash_day: Optional[str] = Field(None, description="Trash collection day")
    quiet_hours: Optional[str] = Field(None, description="Quiet hours")
    checkin_video_url: Optional[str] = Field(None, description="Check-in walkthrough video")
    guidebook_content: Optional[str] = Field(None, description="Free-text guidebook")
    guidebook_url: Optional[str] = Field(None, description="Where the guidebook came from")


class Property(PropertyCreate):
    """Stored property record."""
    id: str = Field(..., description="Property identifier")
    user_id: str = Field(..., description="Owner user ID")
    status: str = Field(..., description="active or inactive")
    created_at: str = Field(..., description="ISO-8601 creation time")
    updated_at: str = Field(..., description="ISO-8601 last update time")


class PropertyPublic(BaseModel):
    """Guest-facing projection of an active property."""
    id: str
    name: str
    persona_style: Optional[str] = None
    wifi_name: Optional[str] = None
    wifi_password: Optional[str] = None
    check_in_instructions: Optional[str] = None
    trash_day: Optional[str] = None
    quiet_hours: Optional[str] = None
    checkin_video_url: Optional[str] = None
    status: str


class PropertyCreated(BaseModel):
    """Response for property creation."""
    model_config = ConfigDict(populate_by_name=True)

    property_id: str = Field(..., alias="propertyId", description="New property identifier")
    data: Property = Field(..., description="Stored record")


class GuidebookProcessRequest(BaseModel):
    """Body for /api/guidebook/process."""
    model_config = ConfigDict(populate_by_name=True)

    property_id: Optional[str] = Field(None, alias="propertyId")
    guidebook_content: Optional[str] = Field(None, alias="guidebookContent")
    guidebook_url: Optional[str] = Field(None, alias="guidebookUrl")


class GuidebookProcessResult(BaseModel):
    """Outcome of processing a guidebook."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Guidebook processed successfully"
    summary: str = ""
    knowledge_base_entries: int = Field(0, alias="knowledgeBaseEntries")


class KbDoc(BaseModel):
    """Knowledge-base question/answer entry for a property."""
    id: str
    property_id: str
    user_id: str
    question: str
    answer: str
    created_at: str


class ChatRequest(BaseModel):
    """Body for /api/chat."""
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = Field(None, description="Guest question")
    property_id: Optional[str] = Field(None, alias="propertyId")
    session_id: Optional[str] = Field(None, alias="sessionId", description="Guest session, used for log correlation")


class ChatReply(BaseModel):
    """Assistant answer for a guest."""
    response: str
    timestamp: str
    fallback: Optional[bool] = Field(None, description="Set when the canned offline reply was used")


def public_projection(rec: Dict[str, Any]) -> PropertyPublic:
    """Build the guest-facing projection from a stored property row."""
    return PropertyPublic(**{k: rec.get(k) for k in PropertyPublic.model_fields})
