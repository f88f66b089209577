"""Recording session API endpoints: CRUD, chunk ingestion and stitched audio."""

import asyncio
import logging
from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, Form, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.config import get_settings
from app.database import get_db
from app.dependencies import CurrentPrincipal, get_current_principal, get_owned_session
from app.errors import BlobStoreError, NotFoundError, NothingToStitchError, TranscriptionError
from app.models.session import RecordingSession
from app.rate_limit import limiter
from app.schemas.audio import SessionAudioResponse
from app.schemas.chunk import ChunkListResponse, ChunkResponse, ChunkSubmitResponse
from app.schemas.session import SessionCreate, SessionListResponse, SessionResponse, SessionUpdate
from app.services.blob_store import get_blob_store
from app.services.chunk import get_chunk_service
from app.services.client import get_client_service
from app.services.session import get_session_service
from app.services.stitcher import stitch_session_audio
from app.services.summary import generate_summary_in_background

logger = logging.getLogger("session_scribe")

router = APIRouter(prefix="/api/v1/sessions", tags=["Sessions"])


@router.post("/", response_model=SessionResponse)
def create_session(
    payload: SessionCreate,
    principal: CurrentPrincipal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> SessionResponse:
    """Create a new recording session, optionally for one of the caller's clients."""
    if payload.client_id:
        client = get_client_service().get_client(db, payload.client_id, principal.principal_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        get_client_service().touch_last_contact(db, client)

    service = get_session_service()
    session = service.create_session(
        db,
        owner_id=principal.principal_id,
        scenario_type=payload.scenario_type,
        title=payload.title,
        expected_duration_minutes=payload.expected_duration_minutes,
        extra_metadata=payload.extra_metadata,
        client_id=payload.client_id,
    )
    return SessionResponse.model_validate(session)


@router.get("/", response_model=SessionListResponse)
def list_sessions(
    principal: CurrentPrincipal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> SessionListResponse:
    """List the caller's sessions, newest first."""
    sessions = get_session_service().get_user_sessions(db, principal.principal_id)
    return SessionListResponse(
        items=[SessionResponse.model_validate(s) for s in sessions],
        total=len(sessions),
    )


@router.get("/{session_id}", response_model=SessionResponse)
def get_session(session: RecordingSession = Depends(get_owned_session)) -> SessionResponse:
    """Get a single session by ID."""
    return SessionResponse.model_validate(session)


@router.patch("/{session_id}", response_model=SessionResponse)
def update_session(
    payload: SessionUpdate,
    session: RecordingSession = Depends(get_owned_session),
    db: Session = Depends(get_db),
) -> SessionResponse:
    """Update status, title, expected duration or metadata."""
    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    session = get_session_service().update_session(db, session, updates)
    return SessionResponse.model_validate(session)


@router.delete("/{session_id}")
def delete_session(
    session: RecordingSession = Depends(get_owned_session),
    db: Session = Depends(get_db),
) -> dict:
    """Delete a session with its chunks, suggestions and summary."""
    session_id = session.id
    get_session_service().delete_session(db, session)
    try:
        removed = get_blob_store().delete_prefix(f"{session_id}/")
        logger.info("Removed %d blobs for deleted session %s", removed, session_id)
    except BlobStoreError as e:
        logger.warning("Blob cleanup failed for deleted session %s: %s", session_id, e)
    return {"detail": "Session deleted"}


@router.post("/{session_id}/chunks", response_model=ChunkSubmitResponse)
@limiter.limit("60/minute")
async def submit_chunk(
    request: Request,
    audio: UploadFile,
    chunk_index: int = Form(...),
    timestamp: datetime | None = Form(None),
    session: RecordingSession = Depends(get_owned_session),
    db: Session = Depends(get_db),
) -> ChunkSubmitResponse:
    """Store, transcribe and filter one audio chunk."""
    settings = get_settings()
    audio_bytes = await audio.read()
    if not audio_bytes:
        raise HTTPException(status_code=400, detail="Empty audio chunk")
    if len(audio_bytes) > settings.MAX_CHUNK_SIZE_MB * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"Audio chunk exceeds {settings.MAX_CHUNK_SIZE_MB}MB limit")

    try:
        chunk, filtered = await run_in_threadpool(
            get_chunk_service().ingest_chunk,
            db,
            session,
            audio_bytes,
            chunk_index,
            timestamp,
            audio.filename,
        )
    except TranscriptionError as e:
        logger.error("Chunk %d of session %s failed: %s", chunk_index, session.id, e)
        raise HTTPException(status_code=502, detail="Transcription failed") from None

    return ChunkSubmitResponse(
        **ChunkResponse.model_validate(chunk).model_dump(),
        filtered=filtered.flagged,
        filter_reasons=filtered.reasons,
    )


@router.get("/{session_id}/transcriptions", response_model=ChunkListResponse)
def list_transcriptions(
    session: RecordingSession = Depends(get_owned_session),
    db: Session = Depends(get_db),
) -> ChunkListResponse:
    """List transcription records in playback order."""
    chunks = get_chunk_service().get_ordered_chunks(db, session.id)
    return ChunkListResponse(
        items=[ChunkResponse.model_validate(c) for c in chunks],
        total=len(chunks),
    )


@router.get("/{session_id}/audio", response_model=SessionAudioResponse)
async def get_session_audio(
    background_tasks: BackgroundTasks,
    force_regenerate: bool = False,
    session: RecordingSession = Depends(get_owned_session),
) -> SessionAudioResponse:
    """Get a time-limited URL for the stitched session recording."""
    settings = get_settings()
    try:
        # The worker loads its own copy of the session and may outlive a timed-out request
        result = await asyncio.wait_for(
            asyncio.to_thread(stitch_session_audio, session.id, session.owner_id, force_regenerate),
            timeout=settings.STITCH_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.error("Stitching session %s exceeded %.0fs", session.id, settings.STITCH_TIMEOUT_SECONDS)
        raise HTTPException(status_code=504, detail="Audio processing timed out, retry later") from None
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except NothingToStitchError as e:
        raise HTTPException(status_code=500, detail=str(e)) from None
    except BlobStoreError as e:
        logger.error("Blob store failure while stitching session %s: %s", session.id, e)
        raise HTTPException(status_code=502, detail="Audio storage unavailable") from None

    if not result.cached and result.full_transcript:
        background_tasks.add_task(
            generate_summary_in_background,
            session.id,
            session.owner_id,
            result.full_transcript,
            result.chunk_count,
        )

    return SessionAudioResponse(
        audio_url=result.audio_url,
        chunk_count=result.chunk_count,
        cached=result.cached,
        expires_at=result.expires_at,
    )
