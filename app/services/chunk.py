"""Chunk service: stores chunk audio, transcribes, filters and appends records."""

import logging
import time
from datetime import datetime
from pathlib import PurePosixPath

from sqlalchemy.orm import Session

from app.errors import BlobStoreError
from app.models.chunk import TranscriptionChunk
from app.models.session import RecordingSession
from app.services.blob_store import CONTENT_TYPES, get_blob_store
from app.services.hallucination import FilterResult, get_hallucination_filter
from app.services.transcription import get_transcription_service

logger = logging.getLogger("session_scribe")

DEFAULT_CHUNK_EXTENSION = ".webm"


def chunk_blob_key(session_id: str, chunk_index: int, filename: str | None) -> str:
    """Build a unique blob key for one chunk: session id plus time and index suffix."""
    ext = PurePosixPath(filename or "").suffix.lower()
    if ext not in CONTENT_TYPES:
        ext = DEFAULT_CHUNK_EXTENSION
    return f"{session_id}/audio-{int(time.time() * 1000)}-{chunk_index}{ext}"


class ChunkService:
    """Handles chunk ingestion and ordered retrieval."""

    def ingest_chunk(
        self,
        db: Session,
        session: RecordingSession,
        audio_bytes: bytes,
        chunk_index: int,
        timestamp: datetime | None = None,
        filename: str | None = None,
        speaker: str = "user",
    ) -> tuple[TranscriptionChunk, FilterResult]:
        """Persist audio, transcribe, filter, and append one chunk record.

        The audio is stored before transcription and kept even when the text is
        filtered out. A blob store failure only loses the audio pointer.
        Raises TranscriptionError when the backend fails; nothing is recorded then.
        """
        audio_key: str | None = chunk_blob_key(session.id, chunk_index, filename)
        try:
            get_blob_store().put(audio_key, audio_bytes)
        except BlobStoreError as e:
            logger.warning("Could not save chunk %d audio for session %s: %s", chunk_index, session.id, e)
            audio_key = None

        filename = filename or f"audio{DEFAULT_CHUNK_EXTENSION}"
        result = get_transcription_service().transcribe_audio(audio_bytes, filename)
        filtered = get_hallucination_filter().apply(result.text, result.confidence)

        chunk = TranscriptionChunk(
            session_id=session.id,
            chunk_index=chunk_index,
            text=filtered.text,
            confidence=filtered.confidence,
            timestamp=timestamp or datetime.utcnow(),
            duration_seconds=result.duration,
            audio_key=audio_key,
            speaker=speaker,
        )
        db.add(chunk)
        # Atomic increment; concurrent chunks of one session must not lose counts
        db.query(RecordingSession).filter(RecordingSession.id == session.id).update(
            {RecordingSession.chunk_count: RecordingSession.chunk_count + 1}, synchronize_session=False
        )
        db.commit()
        db.refresh(chunk)
        return chunk, filtered

    def get_ordered_chunks(
        self, db: Session, session_id: str, with_audio_only: bool = False
    ) -> list[TranscriptionChunk]:
        """Get chunks in playback order: chunk index, then timestamp."""
        query = db.query(TranscriptionChunk).filter(TranscriptionChunk.session_id == session_id)
        if with_audio_only:
            query = query.filter(TranscriptionChunk.audio_key.isnot(None))
        return query.order_by(
            TranscriptionChunk.chunk_index.asc(),
            TranscriptionChunk.timestamp.asc(),
            TranscriptionChunk.id.asc(),
        ).all()

    def get_recent_chunks(
        self, db: Session, session_id: str, since: datetime, limit: int
    ) -> list[TranscriptionChunk]:
        """Get non-empty chunks at or after since, oldest first, capped at limit."""
        return (
            db.query(TranscriptionChunk)
            .filter(
                TranscriptionChunk.session_id == session_id,
                TranscriptionChunk.timestamp >= since,
                TranscriptionChunk.text != "",
            )
            .order_by(TranscriptionChunk.timestamp.asc(), TranscriptionChunk.chunk_index.asc())
            .limit(limit)
            .all()
        )


def build_full_transcript(chunks: list[TranscriptionChunk]) -> str:
    """Space-join the non-empty chunk texts in the given order."""
    return " ".join(c.text.strip() for c in chunks if c.text and c.text.strip())


_chunk_service: ChunkService | None = None


def get_chunk_service() -> ChunkService:
    """Get singleton chunk service instance."""
    global _chunk_service
    if _chunk_service is None:
        _chunk_service = ChunkService()
    return _chunk_service
