"""AI provider health-check DTOs."""
from __future__ import annotations
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

ServiceName = Literal["openai", "gemini"]
ServiceState = Literal[
    "working",
    "quota_exceeded",
    "invalid_key",
    "model_not_found",
    "network_error",
    "unknown_error",
]
RecommendedService = Literal["openai", "gemini", "fallback"]


class AIServiceStatus(BaseModel):
    """Result of probing one AI provider."""
    model_config = ConfigDict(populate_by_name=True)

    service: ServiceName
    status: ServiceState
    model: Optional[str] = None
    error: Optional[str] = None
    response_time: Optional[int] = Field(None, alias="responseTime", description="Milliseconds")


class AIHealthCheck(BaseModel):
    """Aggregate probe result for all providers."""
    model_config = ConfigDict(populate_by_name=True)

    timestamp: str
    openai: AIServiceStatus
    gemini: AIServiceStatus
    recommended_service: RecommendedService = Field(..., alias="recommendedService")
