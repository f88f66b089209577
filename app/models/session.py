"""Recording session model."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.chunk import TranscriptionChunk
from app.models.client import Client
from app.models.suggestion import Suggestion
from app.models.summary import SessionSummary


class ScenarioType(str, enum.Enum):
    IN_PERSON = "in_person"
    CALL_CENTER = "call_center"
    CONFERENCE = "conference"


class SessionStatus(str, enum.Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    PROCESSING = "processing"
    COMPLETED = "completed"


class RecordingSession(Base):
    """One recording/transcription engagement owned by a single principal."""

    __tablename__ = "recording_session"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(128), nullable=False, index=True)
    scenario_type = Column(Enum(ScenarioType, native_enum=False, length=32), nullable=False)
    status = Column(Enum(SessionStatus, native_enum=False, length=32), nullable=False, default=SessionStatus.ACTIVE)
    client_id = Column(String(36), ForeignKey("client.id", ondelete="SET NULL"), nullable=True, index=True)

    # Structured metadata
    title = Column(String(256), nullable=True)
    expected_duration_minutes = Column(Integer, nullable=True)
    ended_at = Column(DateTime, nullable=True)
    chunk_count = Column(Integer, nullable=False, default=0)
    extra_metadata = Column(JSON, nullable=False, default=dict)

    # Post-processing, filled lazily by the stitcher
    stitched_audio_key = Column(String(512), nullable=True)
    full_transcript = Column(Text, nullable=True)
    audio_duration_seconds = Column(Float, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship(Client)
    chunks = relationship(TranscriptionChunk, cascade="all, delete-orphan")
    suggestions = relationship(Suggestion, cascade="all, delete-orphan")
    summary = relationship(SessionSummary, cascade="all, delete-orphan", uselist=False)
