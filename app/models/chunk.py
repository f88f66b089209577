"""Transcription chunk model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, Text

from app.database import Base


class TranscriptionChunk(Base):
    """One captured audio chunk and its (possibly empty) transcript. Append-only."""

    __tablename__ = "transcription_chunk"
    __table_args__ = (Index("ix_transcription_chunk_order", "session_id", "chunk_index", "timestamp"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(36), ForeignKey("recording_session.id", ondelete="CASCADE"), nullable=False, index=True)
    chunk_index = Column(Integer, nullable=False)
    text = Column(Text, nullable=False, default="")
    confidence = Column(Float, nullable=False, default=0.0)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)
    duration_seconds = Column(Float, nullable=True)
    audio_key = Column(String(512), nullable=True)
    speaker = Column(String(64), nullable=False, default="user")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
