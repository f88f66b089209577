"""Signal gate: cheap local check that a chunk holds more than silence.

The three-way OR is deliberately permissive. Dropping real speech costs more
than transcribing a little silence, and any failure to decode or analyze the
chunk lets it through.
"""

import io
import logging
import wave
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger("session_scribe")

SAMPLE_THRESHOLD = 0.005
PEAK_THRESHOLD = 0.01
MEAN_THRESHOLD = 0.001
PERCENT_ABOVE_THRESHOLD = 1.0


@dataclass
class SignalAnalysis:
    """Amplitude statistics for one chunk."""

    peak_amplitude: float
    mean_amplitude: float
    percent_above_threshold: float
    sample_count: int

    @property
    def has_signal(self) -> bool:
        if self.sample_count == 0:
            return False
        return (
            self.peak_amplitude > PEAK_THRESHOLD
            or self.mean_amplitude > MEAN_THRESHOLD
            or self.percent_above_threshold > PERCENT_ABOVE_THRESHOLD
        )


def analyze_samples(samples: np.ndarray) -> SignalAnalysis:
    """Compute amplitude statistics for mono samples on a [-1, 1] scale."""
    amplitudes = np.abs(np.asarray(samples, dtype=np.float32).ravel())
    if amplitudes.size == 0:
        return SignalAnalysis(0.0, 0.0, 0.0, 0)
    return SignalAnalysis(
        peak_amplitude=float(amplitudes.max()),
        mean_amplitude=float(amplitudes.mean()),
        percent_above_threshold=float(np.count_nonzero(amplitudes > SAMPLE_THRESHOLD) / amplitudes.size * 100),
        sample_count=int(amplitudes.size),
    )


def decode_wav(audio_bytes: bytes) -> np.ndarray:
    """Decode PCM WAV bytes to float32 samples of the first channel.

    Raises ValueError for anything that is not 8/16/32-bit PCM WAV.
    """
    try:
        with wave.open(io.BytesIO(audio_bytes), "rb") as wf:
            channels = wf.getnchannels()
            sample_width = wf.getsampwidth()
            frames = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as e:
        raise ValueError(f"Not a PCM WAV chunk: {e}") from e

    if sample_width == 1:
        samples = (np.frombuffer(frames, dtype=np.uint8).astype(np.float32) - 128.0) / 128.0
    elif sample_width == 2:
        samples = np.frombuffer(frames, dtype="<i2").astype(np.float32) / 32768.0
    elif sample_width == 4:
        samples = np.frombuffer(frames, dtype="<i4").astype(np.float32) / 2147483648.0
    else:
        raise ValueError(f"Unsupported sample width: {sample_width}")

    if channels > 1:
        samples = samples[: len(samples) - len(samples) % channels].reshape(-1, channels)[:, 0]
    return samples


def has_signal(audio_bytes: bytes) -> bool:
    """Decide whether a chunk should be sent for transcription. Fails open."""
    try:
        analysis = analyze_samples(decode_wav(audio_bytes))
    except Exception as e:
        logger.warning("Could not analyze chunk volume, sending anyway: %s", e)
        return True

    logger.debug(
        "Signal gate: peak=%.4f mean=%.6f above=%.2f%% -> %s",
        analysis.peak_amplitude,
        analysis.mean_amplitude,
        analysis.percent_above_threshold,
        "send" if analysis.has_signal else "skip",
    )
    return analysis.has_signal
