"""Session summary model."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text

from app.database import Base


class SessionSummary(Base):
    """Structured summary of a complete session transcript. One per session."""

    __tablename__ = "session_summary"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(
        String(36), ForeignKey("recording_session.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    key_topics = Column(JSON, nullable=False, default=list)
    main_concerns = Column(JSON, nullable=False, default=list)
    progress_notes = Column(Text, nullable=False, default="")
    next_steps = Column(JSON, nullable=False, default=list)
    risk_assessment = Column(Text, nullable=False, default="")
    overall_summary = Column(Text, nullable=False, default="")
    session_duration_minutes = Column(Integer, nullable=False, default=0)
    transcript_length = Column(Integer, nullable=False, default=0)
    transcription_count = Column(Integer, nullable=False, default=0)
    confidence = Column(Float, nullable=False, default=0.9)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
