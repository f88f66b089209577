"""Suggestion service: in-session guidance from recent transcript text."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.models.session import RecordingSession
from app.models.suggestion import SUGGESTION_PRIORITIES, SUGGESTION_TYPES, Suggestion
from app.prompts import SUGGESTIONS_PROMPT, SUGGESTIONS_SYSTEM, scenario_label
from app.services.chunk import get_chunk_service
from app.services.llm import get_completion_client, parse_json_response

logger = logging.getLogger("session_scribe")

GENERATED_CONFIDENCE = 0.85


@dataclass
class SuggestionBatch:
    """Result of one generation run."""

    suggestions: list[Suggestion] = field(default_factory=list)
    transcription_count: int = 0
    conversation_length: int = 0
    message: str | None = None


class SuggestionService:
    """Generates, stores and acknowledges suggestions."""

    def generate(
        self,
        db: Session,
        session: RecordingSession,
        lookback_minutes: int = 10,
        max_transcriptions: int = 20,
    ) -> SuggestionBatch:
        """Generate suggestions from the last lookback_minutes of transcript.

        Raises CompletionError or UpstreamFormatError if the backend fails.
        """
        since = datetime.utcnow() - timedelta(minutes=lookback_minutes)
        chunks = get_chunk_service().get_recent_chunks(db, session.id, since, max_transcriptions)
        if not chunks:
            return SuggestionBatch(message="No recent transcriptions available for analysis")

        conversation = "\n".join(f"{c.speaker}: {c.text}" for c in chunks)
        prompt = SUGGESTIONS_PROMPT.format(
            scenario=scenario_label(session.scenario_type.value), conversation=conversation
        )
        response = get_completion_client().complete(prompt, system=SUGGESTIONS_SYSTEM, temperature=0.7, max_tokens=1000)
        items = parse_json_response(response).get("suggestions") or []

        saved = []
        for item in items:
            suggestion = self._build(session.id, item)
            if suggestion is None:
                logger.warning("Skipping malformed suggestion for session %s: %r", session.id, item)
                continue
            db.add(suggestion)
            saved.append(suggestion)
        db.commit()
        for suggestion in saved:
            db.refresh(suggestion)

        logger.info("Generated and saved %d AI suggestions for session %s", len(saved), session.id)
        return SuggestionBatch(
            suggestions=saved,
            transcription_count=len(chunks),
            conversation_length=sum(len(c.text) for c in chunks),
        )

    def _build(self, session_id: str, item: object) -> Suggestion | None:
        if not isinstance(item, dict) or not item.get("content"):
            return None
        suggestion_type = item.get("type")
        if suggestion_type not in SUGGESTION_TYPES:
            return None
        priority = item.get("priority") if item.get("priority") in SUGGESTION_PRIORITIES else "medium"
        return Suggestion(
            session_id=session_id,
            type=suggestion_type,
            content=str(item["content"]),
            priority=priority,
            context=item.get("context"),
            confidence=GENERATED_CONFIDENCE,
            acknowledged=False,
        )

    def create_suggestion(
        self,
        db: Session,
        session: RecordingSession,
        suggestion_type: str,
        content: str,
        priority: str = "medium",
        context: str | None = None,
        confidence: float = 0.8,
    ) -> Suggestion:
        """Store a suggestion supplied by the caller."""
        suggestion = Suggestion(
            session_id=session.id,
            type=suggestion_type,
            content=content,
            priority=priority,
            context=context,
            confidence=confidence,
            acknowledged=False,
        )
        db.add(suggestion)
        db.commit()
        db.refresh(suggestion)
        return suggestion

    def get_suggestions(
        self, db: Session, session_id: str, acknowledged: bool | None = None, limit: int | None = None
    ) -> list[Suggestion]:
        """Get suggestions for a session, newest first."""
        query = db.query(Suggestion).filter(Suggestion.session_id == session_id)
        if acknowledged is not None:
            query = query.filter(Suggestion.acknowledged == acknowledged)
        query = query.order_by(Suggestion.created_at.desc(), Suggestion.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def acknowledge(self, db: Session, session_id: str, suggestion_id: int, acknowledged: bool) -> Suggestion | None:
        """Set the acknowledged flag. Returns None if the suggestion is not in this session."""
        suggestion = (
            db.query(Suggestion).filter(Suggestion.id == suggestion_id, Suggestion.session_id == session_id).first()
        )
        if not suggestion:
            return None
        suggestion.acknowledged = acknowledged
        db.commit()
        db.refresh(suggestion)
        return suggestion


_suggestion_service: SuggestionService | None = None


def get_suggestion_service() -> SuggestionService:
    """Get singleton suggestion service instance."""
    global _suggestion_service
    if _suggestion_service is None:
        _suggestion_service = SuggestionService()
    return _suggestion_service
