"""Summary service: structured end-of-session summaries."""

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.errors import EmptyTranscriptError, SessionScribeError
from app.models.session import RecordingSession
from app.models.summary import SessionSummary
from app.prompts import SUMMARY_PROMPT, SUMMARY_SYSTEM, scenario_label
from app.services.chunk import build_full_transcript, get_chunk_service
from app.services.llm import get_completion_client, parse_json_response

logger = logging.getLogger("session_scribe")

SUMMARY_CONFIDENCE = 0.90
LIST_FIELDS = ("key_topics", "main_concerns", "next_steps")
TEXT_FIELDS = ("progress_notes", "risk_assessment", "overall_summary")

# Background generation opens its own DB session; tests point this at theirs
_session_factory: Callable[[], Session] | None = None


def _as_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    if value in (None, ""):
        return []
    return [str(value)]


class SummaryService:
    """Generates, stores and edits session summaries."""

    def get_summary(self, db: Session, session_id: str) -> SessionSummary | None:
        return db.query(SessionSummary).filter(SessionSummary.session_id == session_id).first()

    def generate(self, db: Session, session: RecordingSession, force_regenerate: bool = False) -> SessionSummary:
        """Generate from the cached full transcript, or from the chunks if stitching has not run yet."""
        if not force_regenerate:
            existing = self.get_summary(db, session.id)
            if existing:
                return existing

        chunks = get_chunk_service().get_ordered_chunks(db, session.id)
        transcript = session.full_transcript or build_full_transcript(chunks)
        return self.generate_from_transcript(db, session, transcript, len(chunks), force_regenerate)

    def generate_from_transcript(
        self,
        db: Session,
        session: RecordingSession,
        full_transcript: str,
        transcription_count: int = 0,
        force_regenerate: bool = False,
    ) -> SessionSummary:
        """Summarize a full transcript. An existing summary is returned unless forced.

        Raises EmptyTranscriptError, CompletionError or UpstreamFormatError.
        """
        existing = self.get_summary(db, session.id)
        if existing and not force_regenerate:
            logger.info("Summary already exists for session %s", session.id)
            return existing
        if not full_transcript.strip():
            raise EmptyTranscriptError("No transcriptions available for summary generation")

        duration_minutes = round((session.audio_duration_seconds or 0) / 60)
        prompt = SUMMARY_PROMPT.format(
            scenario=scenario_label(session.scenario_type.value),
            duration_minutes=duration_minutes,
            transcript=full_transcript,
        )
        response = get_completion_client().complete(prompt, system=SUMMARY_SYSTEM, temperature=0.3, max_tokens=2000)
        parsed = parse_json_response(response)

        if existing:
            db.delete(existing)
            db.flush()

        summary = SessionSummary(
            session_id=session.id,
            key_topics=_as_list(parsed.get("key_topics")),
            main_concerns=_as_list(parsed.get("main_concerns")),
            progress_notes=str(parsed.get("progress_notes") or ""),
            next_steps=_as_list(parsed.get("next_steps")),
            risk_assessment=str(parsed.get("risk_assessment") or ""),
            overall_summary=str(parsed.get("overall_summary") or ""),
            session_duration_minutes=duration_minutes,
            transcript_length=len(full_transcript),
            transcription_count=transcription_count,
            confidence=SUMMARY_CONFIDENCE,
        )
        db.add(summary)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent generation for the same session committed first
            db.rollback()
            winner = self.get_summary(db, session.id)
            if winner is None:
                raise
            logger.info("Summary for session %s was generated concurrently, keeping it", session.id)
            return winner
        db.refresh(summary)
        logger.info("Generated and saved AI summary for session %s", session.id)
        return summary

    def update_summary(self, db: Session, summary: SessionSummary, updates: dict[str, Any]) -> SessionSummary:
        """Apply manual edits to the text and list fields."""
        for name, value in updates.items():
            if name in LIST_FIELDS:
                setattr(summary, name, _as_list(value))
            elif name in TEXT_FIELDS:
                setattr(summary, name, str(value))
        db.commit()
        db.refresh(summary)
        return summary

    def delete_summary(self, db: Session, summary: SessionSummary) -> None:
        db.delete(summary)
        db.commit()


def generate_summary_in_background(session_id: str, owner_id: str, full_transcript: str, chunk_count: int) -> None:
    """Post-stitch summary generation. Failures are logged; they never reach the stitch caller."""
    factory = _session_factory or SessionLocal
    db = factory()
    try:
        session = (
            db.query(RecordingSession)
            .filter(RecordingSession.id == session_id, RecordingSession.owner_id == owner_id)
            .first()
        )
        if session is None:
            logger.warning("Session %s vanished before summary generation", session_id)
            return
        logger.info("Generating AI summary for session %s...", session_id)
        get_summary_service().generate_from_transcript(db, session, full_transcript, chunk_count)
    except (SessionScribeError, SQLAlchemyError) as e:
        logger.error("Failed to generate AI summary for session %s: %s", session_id, e)
        db.rollback()
    finally:
        if _session_factory is None:
            db.close()


_summary_service: SummaryService | None = None


def get_summary_service() -> SummaryService:
    """Get singleton summary service instance."""
    global _summary_service
    if _summary_service is None:
        _summary_service = SummaryService()
    return _summary_service
