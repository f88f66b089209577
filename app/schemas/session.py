"""Pydantic schemas for recording session endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.models.session import ScenarioType, SessionStatus


class SessionCreate(BaseModel):
    scenario_type: ScenarioType
    client_id: str | None = None
    title: str | None = Field(default=None, max_length=256)
    expected_duration_minutes: int | None = Field(default=None, ge=1)
    extra_metadata: dict[str, Any] = {}


class SessionUpdate(BaseModel):
    status: SessionStatus | None = None
    title: str | None = Field(default=None, max_length=256)
    expected_duration_minutes: int | None = Field(default=None, ge=1)
    extra_metadata: dict[str, Any] | None = None


class SessionResponse(BaseModel):
    id: str
    owner_id: str
    scenario_type: ScenarioType
    status: SessionStatus
    client_id: str | None
    title: str | None
    expected_duration_minutes: int | None
    ended_at: datetime | None
    chunk_count: int
    extra_metadata: dict[str, Any]
    stitched_audio_key: str | None
    audio_duration_seconds: float | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SessionListResponse(BaseModel):
    items: list[SessionResponse]
    total: int
