"""Suggestion API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_owned_session
from app.errors import CompletionError, UpstreamFormatError
from app.models.session import RecordingSession
from app.rate_limit import limiter
from app.schemas.suggestion import (
    SuggestionAcknowledge,
    SuggestionCreate,
    SuggestionGenerateRequest,
    SuggestionGenerateResponse,
    SuggestionListResponse,
    SuggestionResponse,
)
from app.services.suggestion import get_suggestion_service

router = APIRouter(prefix="/api/v1/sessions", tags=["Suggestions"])


@router.get("/{session_id}/suggestions", response_model=SuggestionListResponse)
def list_suggestions(
    acknowledged: bool | None = None,
    limit: int | None = None,
    session: RecordingSession = Depends(get_owned_session),
    db: Session = Depends(get_db),
) -> SuggestionListResponse:
    """List suggestions for a session, newest first."""
    items = get_suggestion_service().get_suggestions(db, session.id, acknowledged=acknowledged, limit=limit)
    return SuggestionListResponse(
        items=[SuggestionResponse.model_validate(s) for s in items],
        total=len(items),
    )


@router.post("/{session_id}/suggestions", response_model=SuggestionResponse)
def create_suggestion(
    payload: SuggestionCreate,
    session: RecordingSession = Depends(get_owned_session),
    db: Session = Depends(get_db),
) -> SuggestionResponse:
    """Store a manually entered suggestion."""
    suggestion = get_suggestion_service().create_suggestion(
        db,
        session,
        suggestion_type=payload.type,
        content=payload.content,
        priority=payload.priority,
        context=payload.context,
        confidence=payload.confidence,
    )
    return SuggestionResponse.model_validate(suggestion)


@router.post("/{session_id}/suggestions/generate", response_model=SuggestionGenerateResponse)
@limiter.limit("20/minute")
def generate_suggestions(
    request: Request,
    payload: SuggestionGenerateRequest | None = None,
    session: RecordingSession = Depends(get_owned_session),
    db: Session = Depends(get_db),
) -> SuggestionGenerateResponse:
    """Generate suggestions from the recent transcript."""
    options = payload or SuggestionGenerateRequest()
    try:
        batch = get_suggestion_service().generate(
            db,
            session,
            lookback_minutes=options.lookback_minutes,
            max_transcriptions=options.max_transcriptions,
        )
    except (CompletionError, UpstreamFormatError) as e:
        raise HTTPException(status_code=502, detail=str(e)) from None
    return SuggestionGenerateResponse(
        suggestions=[SuggestionResponse.model_validate(s) for s in batch.suggestions],
        message=batch.message,
        transcription_count=batch.transcription_count,
        conversation_length=batch.conversation_length,
    )


@router.patch("/{session_id}/suggestions/{suggestion_id}", response_model=SuggestionResponse)
def acknowledge_suggestion(
    suggestion_id: int,
    payload: SuggestionAcknowledge,
    session: RecordingSession = Depends(get_owned_session),
    db: Session = Depends(get_db),
) -> SuggestionResponse:
    """Mark a suggestion as acknowledged (or not)."""
    suggestion = get_suggestion_service().acknowledge(db, session.id, suggestion_id, payload.acknowledged)
    if not suggestion:
        raise HTTPException(status_code=404, detail="Suggestion not found")
    return SuggestionResponse.model_validate(suggestion)
