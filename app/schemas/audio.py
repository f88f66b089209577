"""Pydantic schemas for stitched session audio."""

from datetime import datetime

from pydantic import BaseModel


class SessionAudioResponse(BaseModel):
    audio_url: str
    chunk_count: int
    cached: bool
    expires_at: datetime
