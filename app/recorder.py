"""Client-side chunk recorder.

Cuts a continuous audio stream into fixed-length chunks and hands each one to
the gate -> submit pipeline without blocking capture of the next chunk. Chunk
indices are assigned synchronously at emission, so the server can order chunks
correctly however the per-chunk requests complete.
"""

import asyncio
import enum
import io
import logging
import threading
import time
import wave
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

import httpx
import numpy as np

from app.services.signal_gate import has_signal

logger = logging.getLogger("session_scribe")

SAMPLE_RATE = 16000


class RecorderState(str, enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


class AudioSource(Protocol):
    def open(self) -> None: ...

    def drain(self) -> bytes: ...

    def close(self) -> None: ...


class ChunkSink(Protocol):
    async def submit_chunk(self, audio: bytes, chunk_index: int, timestamp: datetime) -> Any: ...

    async def generate_suggestions(self) -> list[dict]: ...


def pcm_to_wav(pcm16: bytes, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Wrap raw mono 16-bit PCM in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm16)
    return buffer.getvalue()


class MicrophoneSource:
    """Microphone capture via sounddevice; each drain returns the buffered audio as WAV."""

    def __init__(self, device: int | None = None, sample_rate: int = SAMPLE_RATE, blocksize: int = 1600) -> None:
        self.device = device
        self.sample_rate = sample_rate
        self.blocksize = blocksize
        self._stream = None
        self._frames: list[np.ndarray] = []
        self._lock = threading.Lock()

    def open(self) -> None:
        import sounddevice as sd

        def callback(indata, _frames, _time_info, status):
            if status:
                logger.debug("Microphone status: %s", status)
            with self._lock:
                self._frames.append(indata[:, 0].copy())

        self._stream = sd.InputStream(
            samplerate=self.sample_rate,
            channels=1,
            dtype="float32",
            blocksize=self.blocksize,
            device=self.device,
            callback=callback,
        )
        self._stream.start()

    def drain(self) -> bytes:
        with self._lock:
            frames, self._frames = self._frames, []
        if not frames:
            return b""
        samples = np.concatenate(frames)
        pcm16 = np.clip(samples * 32768.0, -32768, 32767).astype(np.int16)
        return pcm_to_wav(pcm16.tobytes(), self.sample_rate)

    def close(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None


class ChunkRecorder:
    """Interval-driven capture loop with fire-and-forget per-chunk submission."""

    def __init__(
        self,
        source: AudioSource,
        sink: ChunkSink,
        chunk_duration: float = 3.0,
        gate: Callable[[bytes], bool] = has_signal,
        start_index: int | None = None,
        suggestion_interval: float | None = None,
        on_suggestions: Callable[[list[dict]], None] | None = None,
    ) -> None:
        self.source = source
        self.sink = sink
        self.chunk_duration = chunk_duration
        self.gate = gate
        self.start_index = start_index
        self.suggestion_interval = suggestion_interval
        self.on_suggestions = on_suggestions

        self.state = RecorderState.IDLE
        self._next_index = 0
        self._tick_task: asyncio.Task | None = None
        self._suggestion_task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()

    async def start(self) -> None:
        if self.state is not RecorderState.IDLE:
            raise RuntimeError(f"Cannot start recorder in state '{self.state.value}'")
        self.source.open()
        # Unix seconds at start keep resumed recordings ordered after earlier ones
        self._next_index = self.start_index if self.start_index is not None else int(time.time())
        self.state = RecorderState.RECORDING
        self._tick_task = asyncio.create_task(self._tick_loop())
        if self.suggestion_interval:
            self._suggestion_task = asyncio.create_task(self._suggestion_loop())
        logger.info("Recording started at chunk index %d", self._next_index)

    def emit(self) -> int | None:
        """Cut the current buffer into a chunk and schedule it. Returns its index, or None if empty."""
        if self.state is not RecorderState.RECORDING:
            raise RuntimeError("Recorder is not recording")
        audio = self.source.drain()
        if not audio:
            return None
        chunk_index = self._next_index
        self._next_index += 1
        task = asyncio.create_task(self._process(audio, chunk_index, datetime.utcnow()))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return chunk_index

    async def stop(self) -> None:
        """Cancel the timers, flush the final partial chunk once and release the source."""
        if self.state is not RecorderState.RECORDING:
            return
        try:
            for task in (self._tick_task, self._suggestion_task):
                if task is not None:
                    task.cancel()
                    try:
                        await task
                    except asyncio.CancelledError:
                        pass
                    except Exception as e:
                        logger.warning("Recorder task ended with an error: %s", e)
            self.emit()
        finally:
            self.state = RecorderState.STOPPED
            self.source.close()
        logger.info("Recording stopped, %d chunk requests in flight", len(self._pending))

    async def wait_pending(self) -> None:
        """Wait for chunk requests already issued."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def __aenter__(self) -> "ChunkRecorder":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.chunk_duration)
            try:
                self.emit()
            except Exception as e:
                logger.warning("Chunk capture failed, continuing: %s", e)

    async def _suggestion_loop(self) -> None:
        while True:
            await asyncio.sleep(self.suggestion_interval)
            try:
                suggestions = await self.sink.generate_suggestions()
            except Exception as e:
                logger.warning("Suggestion request failed: %s", e)
                continue
            if suggestions and self.on_suggestions:
                self.on_suggestions(suggestions)

    async def _process(self, audio: bytes, chunk_index: int, timestamp: datetime) -> None:
        # One chunk's failure must never stop the loop
        try:
            if not self.gate(audio):
                logger.debug("Chunk %d dropped: no signal", chunk_index)
                return
            await self.sink.submit_chunk(audio, chunk_index, timestamp)
        except Exception as e:
            logger.warning("Chunk %d failed, skipping: %s", chunk_index, e)


class SessionApiClient:
    """Async HTTP client for one recording session."""

    def __init__(
        self,
        base_url: str,
        token: str,
        session_id: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.session_id = session_id
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {token}"},
            timeout=httpx.Timeout(timeout),
        )

    @property
    def _session_path(self) -> str:
        return f"/api/v1/sessions/{self.session_id}"

    async def submit_chunk(self, audio: bytes, chunk_index: int, timestamp: datetime) -> dict:
        response = await self._client.post(
            f"{self._session_path}/chunks",
            files={"audio": (f"chunk-{chunk_index}.wav", audio, "audio/wav")},
            data={"chunk_index": str(chunk_index), "timestamp": timestamp.isoformat()},
        )
        response.raise_for_status()
        body = response.json()
        if body.get("text"):
            logger.info("Chunk %d: %s", chunk_index, body["text"])
        return body

    async def generate_suggestions(self) -> list[dict]:
        response = await self._client.post(f"{self._session_path}/suggestions/generate", json={})
        response.raise_for_status()
        return response.json()["suggestions"]

    async def complete_session(self) -> dict:
        response = await self._client.patch(self._session_path, json={"status": "completed"})
        response.raise_for_status()
        return response.json()

    async def get_session_audio(self, force_regenerate: bool = False, timeout: float = 300.0) -> dict:
        """Request the stitched recording. Stitching long sessions needs a longer timeout than chunks."""
        response = await self._client.get(
            f"{self._session_path}/audio",
            params={"force_regenerate": str(force_regenerate).lower()},
            timeout=timeout,
        )
        response.raise_for_status()
        return response.json()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "SessionApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


async def create_session(
    base_url: str, token: str, scenario_type: str, title: str | None = None, timeout: float = 30.0
) -> str:
    """Create a session on the server and return its id."""
    async with httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        headers={"Authorization": f"Bearer {token}"},
        timeout=httpx.Timeout(timeout),
    ) as client:
        response = await client.post("/api/v1/sessions/", json={"scenario_type": scenario_type, "title": title})
        response.raise_for_status()
        return response.json()["id"]
