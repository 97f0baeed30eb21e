"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

# Default sample rate for test audio
TEST_SR = 44100


@pytest.fixture
def sample_rate() -> int:
    """Default sample rate for tests."""
    return TEST_SR


@pytest.fixture
def pure_sine(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate a 1 kHz sine block, long enough for a 2048-point FFT.

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    t = np.arange(4096) / sample_rate
    frequency = 1000.0
    y = 0.5 * np.sin(2 * np.pi * frequency * t)
    return y.astype(np.float32), sample_rate


@pytest.fixture
def white_noise(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate white noise.

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    rng = np.random.default_rng(42)  # Reproducible
    y = rng.standard_normal(4096).astype(np.float32) * 0.3
    return y, sample_rate


@pytest.fixture
def silence() -> np.ndarray:
    """All-zero block."""
    return np.zeros(4096, dtype=np.float32)


class RecordingSurface:
    """PathSurface that records every call as a (name, args) tuple."""

    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        def record(*args):
            self.calls.append((name, args))

        return record

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def recording_surface() -> RecordingSurface:
    return RecordingSurface()
