"""Shared test helpers."""

import io
import wave

import numpy as np


def make_wav(samples: np.ndarray, sample_rate: int = 16000, channels: int = 1) -> bytes:
    """Encode float samples in [-1, 1] as 16-bit PCM WAV."""
    pcm16 = np.clip(np.asarray(samples) * 32767.0, -32768, 32767).astype("<i2")
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm16.tobytes())
    return buffer.getvalue()
