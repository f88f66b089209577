"""Transcription adapter for single audio chunks.

Backends:
- ``local``: faster-whisper, model loaded lazily on first use.
- ``openai``: the hosted whisper-1 endpoint with word timestamps.
"""

import io
import logging
import time
from dataclasses import dataclass, field

from app.config import get_settings
from app.errors import TranscriptionError

logger = logging.getLogger("session_scribe")

# Neither backend reports a usable confidence, so accepted text gets a high default
DEFAULT_CONFIDENCE = 0.95


@dataclass
class WordTimestamp:
    word: str
    start: float
    end: float


@dataclass
class TranscriptionResult:
    """Text and timing for one transcribed chunk."""

    text: str
    confidence: float = DEFAULT_CONFIDENCE
    duration: float | None = None
    language: str | None = None
    words: list[WordTimestamp] = field(default_factory=list)
    processing_time_seconds: float = 0.0


class TranscriptionService:
    """Sends one chunk to the configured speech-to-text backend."""

    def __init__(self) -> None:
        self._model = None
        self._client = None

    def _get_model(self):
        """Lazy-load the whisper model."""
        if self._model is None:
            from faster_whisper import WhisperModel

            settings = get_settings()
            self._model = WhisperModel(settings.WHISPER_MODEL_SIZE, device="cpu", compute_type="int8")
        return self._model

    def _get_client(self):
        """Lazy-create the OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            settings = get_settings()
            self._client = OpenAI(api_key=settings.OPENAI_API_KEY)
        return self._client

    def transcribe_audio(self, audio_bytes: bytes, filename: str = "audio.webm") -> TranscriptionResult:
        """Transcribe one chunk. Raises TranscriptionError on any backend failure."""
        settings = get_settings()
        start_time = time.time()
        try:
            if settings.TRANSCRIPTION_BACKEND == "openai":
                result = self._transcribe_openai(audio_bytes, filename)
            else:
                result = self._transcribe_local(audio_bytes)
        except Exception as e:
            raise TranscriptionError(f"Transcription failed: {e}") from e

        result.processing_time_seconds = round(time.time() - start_time, 2)
        logger.info(
            "Transcribed %d bytes in %.2fs: %r", len(audio_bytes), result.processing_time_seconds, result.text[:100]
        )
        return result

    def _transcribe_local(self, audio_bytes: bytes) -> TranscriptionResult:
        settings = get_settings()
        model = self._get_model()
        segments_iter, info = model.transcribe(
            io.BytesIO(audio_bytes),
            beam_size=5,
            language=settings.TRANSCRIPTION_LANGUAGE,
            word_timestamps=True,
        )
        segments_list = list(segments_iter)

        words = [
            WordTimestamp(word=w.word.strip(), start=w.start, end=w.end)
            for seg in segments_list
            for w in (getattr(seg, "words", None) or [])
        ]
        return TranscriptionResult(
            text=" ".join(seg.text.strip() for seg in segments_list).strip(),
            duration=getattr(info, "duration", None),
            language=getattr(info, "language", None),
            words=words,
        )

    def _transcribe_openai(self, audio_bytes: bytes, filename: str) -> TranscriptionResult:
        settings = get_settings()
        transcription = self._get_client().audio.transcriptions.create(
            file=(filename, audio_bytes),
            model=settings.OPENAI_TRANSCRIPTION_MODEL,
            language=settings.TRANSCRIPTION_LANGUAGE,
            response_format="verbose_json",
            timestamp_granularities=["word"],
        )
        words = [
            WordTimestamp(word=w.word, start=w.start, end=w.end) for w in (getattr(transcription, "words", None) or [])
        ]
        return TranscriptionResult(
            text=(transcription.text or "").strip(),
            duration=getattr(transcription, "duration", None),
            language=getattr(transcription, "language", None),
            words=words,
        )


_transcription_service: TranscriptionService | None = None


def get_transcription_service() -> TranscriptionService:
    """Get singleton transcription service instance."""
    global _transcription_service
    if _transcription_service is None:
        _transcription_service = TranscriptionService()
    return _transcription_service
