"""Session service for CRUD scoped to the owning principal."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from app.models.session import RecordingSession, ScenarioType, SessionStatus

logger = logging.getLogger("session_scribe")

UPDATABLE_FIELDS = {"status", "title", "expected_duration_minutes", "extra_metadata"}


class SessionService:
    """Handles recording session creation, lookup, update and deletion."""

    def create_session(
        self,
        db: Session,
        owner_id: str,
        scenario_type: ScenarioType,
        title: str | None = None,
        expected_duration_minutes: int | None = None,
        extra_metadata: dict[str, Any] | None = None,
        client_id: str | None = None,
    ) -> RecordingSession:
        """Create a new active session for the owner, optionally linked to one of their clients."""
        session = RecordingSession(
            owner_id=owner_id,
            client_id=client_id,
            scenario_type=scenario_type,
            status=SessionStatus.ACTIVE,
            title=title,
            expected_duration_minutes=expected_duration_minutes,
            extra_metadata=extra_metadata or {},
        )
        db.add(session)
        db.commit()
        db.refresh(session)
        logger.info("Created session %s (%s) for %s", session.id, scenario_type.value, owner_id)
        return session

    def get_user_sessions(self, db: Session, owner_id: str) -> list[RecordingSession]:
        """Get all sessions for an owner, newest first."""
        return (
            db.query(RecordingSession)
            .filter(RecordingSession.owner_id == owner_id)
            .order_by(RecordingSession.created_at.desc())
            .all()
        )

    def get_session(self, db: Session, session_id: str, owner_id: str) -> RecordingSession | None:
        """Get a single session by ID, scoped to owner."""
        return (
            db.query(RecordingSession)
            .filter(RecordingSession.id == session_id, RecordingSession.owner_id == owner_id)
            .first()
        )

    def update_session(self, db: Session, session: RecordingSession, updates: dict[str, Any]) -> RecordingSession:
        """Apply allowed field updates. Completing a session stamps ended_at once."""
        for field, value in updates.items():
            if field not in UPDATABLE_FIELDS:
                continue
            if field == "extra_metadata":
                # Passthrough bag is merged, not replaced
                session.extra_metadata = {**(session.extra_metadata or {}), **(value or {})}
            else:
                setattr(session, field, value)

        if updates.get("status") == SessionStatus.COMPLETED and session.ended_at is None:
            session.ended_at = datetime.utcnow()

        db.commit()
        db.refresh(session)
        return session

    def delete_session(self, db: Session, session: RecordingSession) -> None:
        """Delete a session; chunks, suggestions and summary cascade."""
        db.delete(session)
        db.commit()
        logger.info("Deleted session %s", session.id)


_session_service: SessionService | None = None


def get_session_service() -> SessionService:
    """Get singleton session service instance."""
    global _session_service
    if _session_service is None:
        _session_service = SessionService()
    return _session_service
