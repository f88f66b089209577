"""Session summary API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_owned_session
from app.errors import CompletionError, EmptyTranscriptError, UpstreamFormatError
from app.models.session import RecordingSession
from app.rate_limit import limiter
from app.schemas.summary import SummaryResponse, SummaryUpdate
from app.services.summary import get_summary_service

router = APIRouter(prefix="/api/v1/sessions", tags=["Summaries"])


@router.get("/{session_id}/summary", response_model=SummaryResponse)
def get_summary(
    session: RecordingSession = Depends(get_owned_session),
    db: Session = Depends(get_db),
) -> SummaryResponse:
    """Get the summary for a session."""
    summary = get_summary_service().get_summary(db, session.id)
    if not summary:
        raise HTTPException(status_code=404, detail="Summary not found")
    return SummaryResponse.model_validate(summary)


@router.post("/{session_id}/summary", response_model=SummaryResponse)
@limiter.limit("10/minute")
def generate_summary(
    request: Request,
    force_regenerate: bool = False,
    session: RecordingSession = Depends(get_owned_session),
    db: Session = Depends(get_db),
) -> SummaryResponse:
    """Generate (or return the existing) summary for a session."""
    try:
        summary = get_summary_service().generate(db, session, force_regenerate=force_regenerate)
    except EmptyTranscriptError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    except (CompletionError, UpstreamFormatError) as e:
        raise HTTPException(status_code=502, detail=str(e)) from None
    return SummaryResponse.model_validate(summary)


@router.patch("/{session_id}/summary", response_model=SummaryResponse)
def update_summary(
    payload: SummaryUpdate,
    session: RecordingSession = Depends(get_owned_session),
    db: Session = Depends(get_db),
) -> SummaryResponse:
    """Manually edit summary fields."""
    service = get_summary_service()
    summary = service.get_summary(db, session.id)
    if not summary:
        raise HTTPException(status_code=404, detail="Summary not found")
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    summary = service.update_summary(db, summary, updates)
    return SummaryResponse.model_validate(summary)


@router.delete("/{session_id}/summary")
def delete_summary(
    session: RecordingSession = Depends(get_owned_session),
    db: Session = Depends(get_db),
) -> dict:
    """Delete the summary for a session."""
    service = get_summary_service()
    summary = service.get_summary(db, session.id)
    if not summary:
        raise HTTPException(status_code=404, detail="Summary not found")
    service.delete_summary(db, summary)
    return {"detail": "Summary deleted"}
