"""AI suggestion model."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text

from app.database import Base

SUGGESTION_TYPES = ("followup_question", "resource", "action_item", "concern_flag")
SUGGESTION_PRIORITIES = ("low", "medium", "high", "urgent")


class Suggestion(Base):
    """Guidance generated (or entered) for a session while it is recorded."""

    __tablename__ = "ai_suggestion"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(36), ForeignKey("recording_session.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(32), nullable=False)
    content = Column(Text, nullable=False)
    priority = Column(String(16), nullable=False, default="medium")
    context = Column(Text, nullable=True)
    confidence = Column(Float, nullable=False, default=0.8)
    acknowledged = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
