"""Pydantic schemas for suggestion endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

SuggestionType = Literal["followup_question", "resource", "action_item", "concern_flag"]
SuggestionPriority = Literal["low", "medium", "high", "urgent"]


class SuggestionCreate(BaseModel):
    type: SuggestionType
    content: str = Field(min_length=1)
    priority: SuggestionPriority = "medium"
    context: str | None = None
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)


class SuggestionGenerateRequest(BaseModel):
    lookback_minutes: int = Field(default=10, ge=1, le=240)
    max_transcriptions: int = Field(default=20, ge=1, le=200)


class SuggestionAcknowledge(BaseModel):
    acknowledged: bool = True


class SuggestionResponse(BaseModel):
    id: int
    session_id: str
    type: str
    content: str
    priority: str
    context: str | None
    confidence: float
    acknowledged: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class SuggestionListResponse(BaseModel):
    items: list[SuggestionResponse]
    total: int


class SuggestionGenerateResponse(BaseModel):
    suggestions: list[SuggestionResponse]
    message: str | None = None
    transcription_count: int = 0
    conversation_length: int = 0
