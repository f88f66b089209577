"""Tests for the signal gate."""

import numpy as np

from app.services.signal_gate import analyze_samples, decode_wav, has_signal
from tests.helpers import make_wav


class TestAnalyzeSamples:
    """Tests for amplitude statistics."""

    def test_peak_alone_passes(self):
        """One loud sample is enough, however quiet the rest is."""
        samples = np.zeros(16000, dtype=np.float32)
        samples[100] = 0.02
        analysis = analyze_samples(samples)
        assert analysis.mean_amplitude < 0.001
        assert analysis.has_signal

    def test_mean_alone_passes(self):
        samples = np.full(16000, 0.002, dtype=np.float32)
        analysis = analyze_samples(samples)
        assert analysis.peak_amplitude < 0.01
        assert analysis.has_signal

    def test_percent_above_threshold_alone_passes(self):
        samples = np.zeros(1000, dtype=np.float32)
        samples[:20] = 0.006  # 2% above the low threshold
        analysis = analyze_samples(samples)
        assert analysis.peak_amplitude < 0.01
        assert analysis.mean_amplitude < 0.001
        assert analysis.percent_above_threshold == 2.0
        assert analysis.has_signal

    def test_silence_fails(self):
        analysis = analyze_samples(np.zeros(16000, dtype=np.float32))
        assert not analysis.has_signal

    def test_negative_amplitudes_count(self):
        samples = np.zeros(16000, dtype=np.float32)
        samples[5] = -0.5
        assert analyze_samples(samples).peak_amplitude == 0.5

    def test_empty_samples_are_not_signal(self):
        analysis = analyze_samples(np.array([], dtype=np.float32))
        assert analysis.sample_count == 0
        assert not analysis.has_signal


class TestHasSignal:
    """Tests for the byte-level gate decision."""

    def test_speech_like_chunk_passes(self):
        t = np.linspace(0, 1, 16000, endpoint=False)
        assert has_signal(make_wav(0.3 * np.sin(2 * np.pi * 220 * t)))

    def test_silent_chunk_is_dropped(self):
        assert not has_signal(make_wav(np.zeros(16000)))

    def test_undecodable_chunk_fails_open(self):
        assert has_signal(b"\x1aE\xdf\xa3 not a wav file")

    def test_empty_bytes_fail_open(self):
        assert has_signal(b"")

    def test_stereo_uses_first_channel(self):
        left = np.full(100, 0.5)
        right = np.zeros(100)
        interleaved = np.column_stack([left, right]).ravel()
        samples = decode_wav(make_wav(interleaved, channels=2))
        assert len(samples) == 100
        assert np.allclose(samples, 0.5, atol=1e-3)
