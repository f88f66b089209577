"""Pydantic schemas for chunk submission and transcription listing."""

from datetime import datetime

from pydantic import BaseModel


class ChunkResponse(BaseModel):
    id: int
    session_id: str
    chunk_index: int
    text: str
    confidence: float
    timestamp: datetime
    duration_seconds: float | None
    audio_key: str | None
    speaker: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ChunkSubmitResponse(ChunkResponse):
    filtered: bool = False
    filter_reasons: list[str] = []


class ChunkListResponse(BaseModel):
    items: list[ChunkResponse]
    total: int
