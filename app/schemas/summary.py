"""Pydantic schemas for session summary endpoints."""

from datetime import datetime

from pydantic import BaseModel


class SummaryUpdate(BaseModel):
    key_topics: list[str] | None = None
    main_concerns: list[str] | None = None
    progress_notes: str | None = None
    next_steps: list[str] | None = None
    risk_assessment: str | None = None
    overall_summary: str | None = None


class SummaryResponse(BaseModel):
    id: int
    session_id: str
    key_topics: list[str]
    main_concerns: list[str]
    progress_notes: str
    next_steps: list[str]
    risk_assessment: str
    overall_summary: str
    session_duration_minutes: int
    transcript_length: int
    transcription_count: int
    confidence: float
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
