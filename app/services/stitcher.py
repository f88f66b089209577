"""Stitcher: rebuilds one continuous session recording from its chunk blobs.

Chunks are concatenated byte-wise in (chunk index, timestamp) order. Sessions
below ``STITCH_LARGE_SESSION_THRESHOLD`` chunks are concatenated in one pass;
larger ones are concatenated per batch first so that thousands of small
buffers are never held at once. Both paths produce identical bytes.

The artifact lives at a per-session key whose extension follows the chunks'
container. Re-stitching overwrites it, so concurrent requests for the same
chunk set are safe without locking.
"""

import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import PurePosixPath

from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import SessionLocal
from app.errors import BlobStoreError, NoAudioError, NotFoundError, NothingToStitchError
from app.models.chunk import TranscriptionChunk
from app.models.session import RecordingSession
from app.services.blob_store import CONTENT_TYPES, BlobStore, get_blob_store
from app.services.chunk import build_full_transcript, get_chunk_service

logger = logging.getLogger("session_scribe")

STITCHED_AUDIO_STEM = "session-complete"
DEFAULT_STITCHED_EXTENSION = ".webm"

# Stitch workers open their own DB session; tests point this at theirs
_session_factory: Callable[[], Session] | None = None


def stitched_audio_key(session_id: str, extension: str = DEFAULT_STITCHED_EXTENSION) -> str:
    return f"{session_id}/{STITCHED_AUDIO_STEM}{extension}"


def stitched_extension(chunks: Sequence[TranscriptionChunk]) -> str:
    """The artifact keeps the container of its chunks, taken from the first one."""
    suffix = PurePosixPath(chunks[0].audio_key or "").suffix.lower() if chunks else ""
    return suffix if suffix in CONTENT_TYPES else DEFAULT_STITCHED_EXTENSION


def partition(items: Sequence, size: int) -> Iterator[Sequence]:
    """Yield consecutive slices of at most size items."""
    for start in range(0, len(items), size):
        yield items[start : start + size]


@dataclass
class StitchResult:
    """Access details for a session's stitched recording."""

    audio_url: str
    chunk_count: int
    cached: bool
    expires_at: datetime
    full_transcript: str | None = None


class StitchService:
    """Stitches, stores and caches session recordings."""

    def __init__(
        self,
        large_session_threshold: int | None = None,
        batch_size: int | None = None,
        chunk_duration_seconds: int | None = None,
        url_ttl_seconds: int | None = None,
    ) -> None:
        settings = get_settings()
        self.large_session_threshold = large_session_threshold or settings.STITCH_LARGE_SESSION_THRESHOLD
        self.batch_size = batch_size or settings.STITCH_BATCH_SIZE
        self.chunk_duration_seconds = chunk_duration_seconds or settings.CHUNK_DURATION_SECONDS
        self.url_ttl_seconds = url_ttl_seconds or settings.SIGNED_URL_TTL_SECONDS

    def get_session_audio(
        self, db: Session, session: RecordingSession, force_regenerate: bool = False
    ) -> StitchResult:
        """Return a signed URL for the session recording, stitching it unless a cached copy is usable.

        Raises NoAudioError if no chunk has audio, NothingToStitchError if every
        download fails, BlobStoreError if the artifact cannot be stored or signed.
        """
        chunks = get_chunk_service().get_ordered_chunks(db, session.id, with_audio_only=True)
        if not chunks:
            raise NoAudioError("No audio recordings found for this session")

        store = get_blob_store()

        if session.stitched_audio_key and not force_regenerate:
            try:
                url = store.signed_url(session.stitched_audio_key, self.url_ttl_seconds)
            except BlobStoreError as e:
                # Stale pointer, rebuild below
                logger.warning("Cached stitched audio for session %s unusable, re-stitching: %s", session.id, e)
            else:
                logger.info("Using cached stitched audio for session %s", session.id)
                return StitchResult(
                    audio_url=url,
                    chunk_count=len(chunks),
                    cached=True,
                    expires_at=self._expires_at(),
                    full_transcript=session.full_transcript,
                )

        if force_regenerate:
            logger.info("Force re-stitching requested for session %s", session.id)

        logger.info("Creating stitched audio for session %s (%d chunks)", session.id, len(chunks))
        audio, stitched = self.stitch_chunks(chunks, store)

        key = stitched_audio_key(session.id, stitched_extension(stitched))
        store.put(key, audio)
        url = store.signed_url(key, self.url_ttl_seconds)

        full_transcript = build_full_transcript(stitched)
        session.stitched_audio_key = key
        session.full_transcript = full_transcript
        # Approximation: does not account for a short final chunk
        session.audio_duration_seconds = float(len(stitched) * self.chunk_duration_seconds)
        db.commit()

        logger.info(
            "Created stitched audio for session %s: %d/%d chunks, %.2fMB",
            session.id,
            len(stitched),
            len(chunks),
            len(audio) / 1024 / 1024,
        )
        return StitchResult(
            audio_url=url,
            chunk_count=len(stitched),
            cached=False,
            expires_at=self._expires_at(),
            full_transcript=full_transcript,
        )

    def stitch_chunks(
        self, chunks: Sequence[TranscriptionChunk], store: BlobStore
    ) -> tuple[bytes, list[TranscriptionChunk]]:
        """Concatenate chunk audio in the given order.

        Returns the bytes and the chunks that were actually included.
        Raises NothingToStitchError when no chunk could be downloaded.
        """
        if len(chunks) >= self.large_session_threshold:
            logger.info(
                "Processing large session with %d chunks (~%d minutes) in batches of %d",
                len(chunks),
                len(chunks) * self.chunk_duration_seconds // 60,
                self.batch_size,
            )
            audio, stitched = self._concatenate_batched(chunks, store)
        else:
            audio, stitched = self._concatenate(chunks, store)

        if not stitched:
            raise NothingToStitchError("No audio chunks could be processed")
        return audio, stitched

    def _concatenate(
        self, chunks: Sequence[TranscriptionChunk], store: BlobStore
    ) -> tuple[bytes, list[TranscriptionChunk]]:
        buffers: list[bytes] = []
        stitched: list[TranscriptionChunk] = []
        for chunk in chunks:
            data = self._download(chunk, store)
            if data is None:
                continue
            buffers.append(data)
            stitched.append(chunk)
        return b"".join(buffers), stitched

    def _concatenate_batched(
        self, chunks: Sequence[TranscriptionChunk], store: BlobStore
    ) -> tuple[bytes, list[TranscriptionChunk]]:
        batch_buffers: list[bytes] = []
        stitched: list[TranscriptionChunk] = []
        batch_count = (len(chunks) + self.batch_size - 1) // self.batch_size
        for number, batch in enumerate(partition(chunks, self.batch_size), start=1):
            # Per-chunk buffers die with this call; only the joined batch survives
            batch_audio, batch_stitched = self._concatenate(batch, store)
            if batch_stitched:
                batch_buffers.append(batch_audio)
                stitched.extend(batch_stitched)
            logger.info(
                "Batch %d/%d processed: %d/%d chunks, %.2fMB",
                number,
                batch_count,
                len(batch_stitched),
                len(batch),
                len(batch_audio) / 1024 / 1024,
            )
        return b"".join(batch_buffers), stitched

    def _download(self, chunk: TranscriptionChunk, store: BlobStore) -> bytes | None:
        try:
            return store.get(chunk.audio_key)
        except BlobStoreError as e:
            logger.warning("Failed to download chunk %d (%s): %s", chunk.chunk_index, chunk.audio_key, e)
            return None

    def _expires_at(self) -> datetime:
        return datetime.utcnow() + timedelta(seconds=self.url_ttl_seconds)


_stitch_service: StitchService | None = None


def get_stitch_service() -> StitchService:
    """Get singleton stitch service instance."""
    global _stitch_service
    if _stitch_service is None:
        _stitch_service = StitchService()
    return _stitch_service


def stitch_session_audio(session_id: str, owner_id: str, force_regenerate: bool = False) -> StitchResult:
    """Worker-thread entry point: stitch with a DB session owned by this call.

    The caller may give up waiting (timeout) while this keeps running, so the
    request-scoped DB session is never shared with it.
    """
    factory = _session_factory or SessionLocal
    db = factory()
    try:
        session = (
            db.query(RecordingSession)
            .filter(RecordingSession.id == session_id, RecordingSession.owner_id == owner_id)
            .first()
        )
        if session is None:
            raise NotFoundError("Session not found")
        return get_stitch_service().get_session_audio(db, session, force_regenerate)
    finally:
        if _session_factory is None:
            db.close()
