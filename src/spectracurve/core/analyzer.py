"""
Spectrum analysis module.

Turns blocks of mono time-domain samples into a smoothed magnitude
spectrum, expressed either in decibels or as display-ready bytes.
Follows the Web Audio analyser contract: window, transform, magnitude,
smoothing over time, then dB conversion.
"""

import logging
import numbers
from dataclasses import dataclass, replace
from typing import Callable

import librosa
import numpy as np
from scipy.signal import windows

from spectracurve.exceptions import (
    ConfigurationError,
    InvalidInputError,
    UnsupportedWindowError,
)

logger = logging.getLogger(__name__)

# In-place DFT: (real, imag) -> None
Transform = Callable[[np.ndarray, np.ndarray], None]

WINDOW_FUNCTIONS: dict[str, Callable[[int], np.ndarray]] = {
    "blackman": lambda n: windows.blackman(n, sym=True),
}


def _is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def numpy_transform(real: np.ndarray, imag: np.ndarray) -> None:
    """
    Discrete Fourier transform computed in place.

    Args:
        real: Real components, overwritten with the frequency-domain real part.
        imag: Imaginary components, overwritten with the imaginary part.
    """
    n = len(real)
    if len(imag) != n:
        raise InvalidInputError(
            f"real and imaginary sequences differ in length ({n} != {len(imag)})"
        )
    if not _is_power_of_two(n):
        raise InvalidInputError(f"transform length must be a power of two, got {n}")

    spectrum = np.fft.fft(np.asarray(real) + 1j * np.asarray(imag))
    real[:] = spectrum.real
    imag[:] = spectrum.imag


def make_window(window_type: str, size: int) -> np.ndarray:
    """
    Build a window table by name.

    Args:
        window_type: Window function name (only "blackman" is supported).
        size: Number of taps.

    Returns:
        Window of length ``size``.
    """
    try:
        factory = WINDOW_FUNCTIONS[window_type]
    except KeyError:
        raise UnsupportedWindowError(
            f"unsupported window type {window_type!r}; "
            f"expected one of {sorted(WINDOW_FUNCTIONS)}"
        ) from None
    return np.asarray(factory(size), dtype=np.float64)


def decibels_to_bytes(
    decibels: np.ndarray,
    min_decibels: float,
    max_decibels: float,
) -> np.ndarray:
    """
    Rescale decibel values from [min_decibels, max_decibels] to [0, 255].

    Values outside the range saturate. NaN maps to 0.
    """
    scaled = (255.0 / (max_decibels - min_decibels)) * (
        np.asarray(decibels, dtype=np.float64) - min_decibels
    )
    scaled = np.nan_to_num(scaled, nan=0.0, posinf=255.0, neginf=0.0)
    return np.clip(scaled, 0.0, 255.0).astype(np.uint8)


@dataclass(frozen=True)
class AnalyzerConfig:
    """Settings for a SpectrumAnalyzer."""

    fft_size: int = 512
    min_decibels: float = -100.0
    max_decibels: float = -30.0
    sample_rate: float = 44100.0
    window_type: str = "blackman"
    smoothing_time_constant: float = 0.8  # EMA decay factor in [0, 1)

    def validate(self) -> None:
        """Raise if any setting is out of range."""
        if isinstance(self.fft_size, bool) or not isinstance(self.fft_size, (int, np.integer)):
            raise ConfigurationError(f"fft_size must be an integer, got {self.fft_size!r}")
        if self.fft_size < 2 or not _is_power_of_two(int(self.fft_size)):
            raise ConfigurationError(
                f"fft_size must be a power of two >= 2, got {self.fft_size}"
            )
        for name in ("sample_rate", "min_decibels", "max_decibels", "smoothing_time_constant"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ConfigurationError(f"{name} must be a real number, got {value!r}")
        if not np.isfinite(self.sample_rate) or self.sample_rate <= 0:
            raise ConfigurationError(f"sample_rate must be positive, got {self.sample_rate}")
        if not self.min_decibels < self.max_decibels:
            raise ConfigurationError(
                f"min_decibels ({self.min_decibels}) must be below "
                f"max_decibels ({self.max_decibels})"
            )
        if not 0.0 <= self.smoothing_time_constant < 1.0:
            raise ConfigurationError(
                "smoothing_time_constant must be in [0, 1), "
                f"got {self.smoothing_time_constant}"
            )
        if not isinstance(self.window_type, str) or self.window_type not in WINDOW_FUNCTIONS:
            raise UnsupportedWindowError(f"unsupported window type {self.window_type!r}")


class SpectrumAnalyzer:
    """
    Windowed FFT analyser with exponential smoothing over time.

    The analyser is stateful: every analyze call advances a per-bin
    smoothing accumulator. The accumulator is only reallocated when
    ``fft_size`` changes, or cleared explicitly with ``reset()``.
    """

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        transform: Transform = numpy_transform,
    ):
        """
        Initialize the analyser.

        Args:
            config: Analyser settings. Uses defaults if None.
            transform: In-place DFT routine taking (real, imag) sequences.
        """
        self.transform = transform
        self._config: AnalyzerConfig | None = None
        self._window = np.zeros(0)
        self._frequencies = np.zeros(0)
        self._smoothing = np.zeros(0)
        self.configure(config or AnalyzerConfig())

    def configure(
        self,
        config: AnalyzerConfig | None = None,
        **overrides,
    ) -> AnalyzerConfig:
        """
        Validate and install a configuration.

        Recomputes the window and frequency tables. A change of
        ``fft_size`` also zeroes the smoothing accumulator.

        Args:
            config: Full replacement config. Defaults to the current one.
            **overrides: Individual fields to change, e.g. ``fft_size=1024``.

        Returns:
            The installed configuration.
        """
        base = config or self._config or AnalyzerConfig()
        try:
            new_config = replace(base, **overrides)
        except TypeError as e:
            raise ConfigurationError(str(e)) from e
        new_config.validate()

        n = int(new_config.fft_size)
        window = make_window(new_config.window_type, n)
        frequencies = librosa.fft_frequencies(sr=new_config.sample_rate, n_fft=n)[: n // 2]

        if self._config is None or self._config.fft_size != n:
            self._smoothing = np.zeros(n // 2)
            logger.debug("Allocated smoothing state for %d bins", n // 2)

        self._config = new_config
        self._window = window
        self._frequencies = frequencies
        logger.debug("Analyzer configured: %s", new_config)
        return new_config

    @property
    def config(self) -> AnalyzerConfig:
        return self._config

    @property
    def fft_size(self) -> int:
        return int(self._config.fft_size)

    @property
    def sample_rate(self) -> float:
        return self._config.sample_rate

    @property
    def window_type(self) -> str:
        return self._config.window_type

    @property
    def frequency_bin_count(self) -> int:
        """Half the FFT size."""
        return self.fft_size // 2

    @property
    def window(self) -> np.ndarray:
        return self._window.copy()

    @property
    def frequencies(self) -> np.ndarray:
        """Centre frequency in Hz of each bin."""
        return self._frequencies.copy()

    @property
    def smoothing(self) -> np.ndarray:
        return self._smoothing.copy()

    def reset(self) -> None:
        """Zero the smoothing accumulator."""
        self._smoothing = np.zeros(self.frequency_bin_count)

    def bin_index(self, frequency: float) -> int:
        """Convert a frequency in Hz to the index of the bin containing it."""
        return int(frequency / (self.sample_rate / self.fft_size))

    def analyze_to_decibels(self, buffer) -> np.ndarray:
        """
        Smoothed magnitude spectrum in decibels.

        Bins whose accumulator is exactly zero come out as ``-inf``.

        Args:
            buffer: Mono samples, at least ``fft_size`` long. Only the
                first ``fft_size`` samples are used.

        Returns:
            Array of ``fft_size / 2`` float64 values.
        """
        n = self.fft_size
        samples = np.asarray(buffer, dtype=np.float64)
        if samples.ndim != 1:
            raise InvalidInputError(f"expected a mono 1-D buffer, got shape {samples.shape}")
        if len(samples) < n:
            raise InvalidInputError(
                f"buffer holds {len(samples)} samples, fft_size is {n}"
            )

        real = samples[:n] * self._window
        imag = np.zeros(n)
        self.transform(real, imag)

        half = n // 2
        magnitude = np.hypot(real[:half], imag[:half]) / n

        alpha = self._config.smoothing_time_constant
        self._smoothing = alpha * self._smoothing + (1.0 - alpha) * magnitude

        with np.errstate(divide="ignore"):
            return 20.0 * np.log10(self._smoothing)

    def analyze_to_bytes(self, buffer) -> np.ndarray:
        """
        Smoothed spectrum rescaled to unsigned bytes.

        Decibels in [min_decibels, max_decibels] map linearly onto
        [0, 255]; anything outside saturates.

        Returns:
            uint8 array of ``fft_size / 2`` values.
        """
        return decibels_to_bytes(
            self.analyze_to_decibels(buffer),
            self._config.min_decibels,
            self._config.max_decibels,
        )
