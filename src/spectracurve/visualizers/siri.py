"""
Siri-style waveform renderer.

Splits the byte spectrum into frequency bands and draws each band as a
pair of mirrored quadratic curves (top and bottom) whose peaks follow the
loudest bins in the band:
- Band loudness → Peak height
- Silence → New random x offset and peak count for the band
- Each band → Own colour, blurred additive glow under a screen-blended solid
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator

import numpy as np
from PIL import ImageColor, ImageFilter

from spectracurve.core.analyzer import AnalyzerConfig, SpectrumAnalyzer
from spectracurve.core.curve import CurveMode, CurveSpec
from spectracurve.exceptions import ConfigurationError
from spectracurve.render.surface import PillowSurface, draw_curve

logger = logging.getLogger(__name__)


@dataclass
class WaveformConfig:
    """Configuration for the Siri waveform renderer."""

    width: int = 290
    height: int = 580
    # Band edges in Hz; band i spans frequencies[i]..frequencies[i + 1]
    frequencies: tuple[float, ...] = (500.0, 1000.0, 2000.0, 4000.0, 6000.0)
    colors: tuple[str, ...] = ("#2B4DDC", "#FF518B", "#7BFFCB", "#F6FFA4")
    padding: float | None = None  # Horizontal padding per side, default width / 5
    sensitivity: float = 0.3  # Peak pixels per spectrum byte
    increase_peaks: float = -20.0  # Added to every peak (px)
    min_peak_height: float = 1.0  # Average peak below this counts as silence
    blur_radius: float = 5.0
    glow_alpha: float = 0.4
    vertical_offset: float = 190.0  # Shift of the waveform centre line below mid-height (px)
    background: str = "#181818"
    line_color: tuple[int, int, int] = (255, 255, 255)

    # Analyser settings used when no analyser is supplied
    fft_size: int = 2048
    sample_rate: float = 44100.0
    smoothing_time_constant: float = 0.6

    def __post_init__(self):
        if self.padding is None:
            self.padding = self.width / 5

    @property
    def n_bands(self) -> int:
        return len(self.frequencies) - 1

    def validate(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(f"invalid frame size {self.width}x{self.height}")
        if len(self.frequencies) < 2:
            raise ConfigurationError("at least two band edges are required")
        if any(b <= a for a, b in zip(self.frequencies, self.frequencies[1:])):
            raise ConfigurationError(
                f"band edges must be strictly increasing, got {self.frequencies}"
            )
        if len(self.colors) < self.n_bands:
            raise ConfigurationError(
                f"{self.n_bands} bands need {self.n_bands} colours, got {len(self.colors)}"
            )
        if self.blur_radius < 0:
            raise ConfigurationError(f"blur_radius must be >= 0, got {self.blur_radius}")
        if not 0.0 <= self.glow_alpha <= 1.0:
            raise ConfigurationError(f"glow_alpha must be in [0, 1], got {self.glow_alpha}")


class SiriWaveform:
    """
    Renders animated Siri-like curves from mono audio blocks.

    Each call to ``render_frame`` advances the analyser's smoothing state
    by exactly one block.
    """

    def __init__(
        self,
        config: WaveformConfig | None = None,
        analyzer: SpectrumAnalyzer | None = None,
        seed: int | None = None,
    ):
        """
        Initialize the renderer.

        Args:
            config: Rendering configuration. Uses defaults if None.
            analyzer: Spectrum analyser to use. Built from ``config`` if None.
            seed: Seed for the random band offsets and peak counts.
        """
        self.cfg = config or WaveformConfig()
        self.cfg.validate()
        self.analyzer = analyzer or SpectrumAnalyzer(
            AnalyzerConfig(
                fft_size=self.cfg.fft_size,
                sample_rate=self.cfg.sample_rate,
                smoothing_time_constant=self.cfg.smoothing_time_constant,
            )
        )
        self.rng = np.random.default_rng(seed)

        self.band_indexes = [self.analyzer.bin_index(f) for f in self.cfg.frequencies]
        if any(b <= a for a, b in zip(self.band_indexes, self.band_indexes[1:])):
            raise ConfigurationError(
                f"bands {self.cfg.frequencies} Hz collapse to bins {self.band_indexes}; "
                "increase fft_size or widen the bands"
            )
        if self.band_indexes[-1] > self.analyzer.frequency_bin_count:
            raise ConfigurationError(
                f"band edge {self.cfg.frequencies[-1]} Hz is above the Nyquist frequency"
            )

        self.offsets = [float(self.rng.random() * 30 + 1) for _ in range(self.cfg.n_bands)]
        self.num_peaks = [self._random_peak_count() for _ in range(self.cfg.n_bands)]

        # Reused between frames; points are cleared and repopulated per band
        self.curve_top = CurveSpec(is_stroked=False, mode=CurveMode.QUADRATIC_CURVE)
        self.curve_bottom = CurveSpec(is_stroked=False, mode=CurveMode.QUADRATIC_CURVE)

    def _random_peak_count(self) -> int:
        return int(self.rng.integers(2, 4))

    def reshuffle(self, band: int) -> None:
        """Pick a new random offset and peak count for a band."""
        self.offsets[band] = float(self.rng.random() * 25)
        self.num_peaks[band] = self._random_peak_count()
        logger.debug(
            "Band %d reshuffled: offset=%.2f peaks=%d",
            band,
            self.offsets[band],
            self.num_peaks[band],
        )

    def band_peaks(self, spectrum: np.ndarray, band: int) -> tuple[np.ndarray, np.ndarray]:
        """
        Peak heights and bin positions for one band.

        The band is split into ``num_peaks`` sub-ranges. Heights alternate
        between zero at the sub-range edges and the tallest bin inside each
        sub-range (only heights above 1 px count).

        Args:
            spectrum: Byte spectrum from ``analyze_to_bytes``.
            band: Band index.

        Returns:
            Tuple of (heights, bin_indexes). There is one more index than
            heights, since the closing edge index is never drawn.
        """
        start = self.band_indexes[band]
        total = self.band_indexes[band + 1] - start
        allowed = min(self.num_peaks[band], total)
        skip = total / allowed

        heights = np.zeros(2 * allowed + 1)
        indexes = np.zeros(2 * allowed + 2, dtype=int)
        for count in range(allowed + 1):
            edge = int(start + count * skip)
            indexes[2 * count] = edge
            indexes[2 * count + 1] = int(edge + skip / 2)

        data = np.asarray(spectrum, dtype=np.float64)
        for i in range(allowed):
            lo = int(start + i * skip)
            hi = int(lo + skip)
            bars = self.cfg.increase_peaks + data[lo:hi] * self.cfg.sensitivity
            bars = bars[bars > 1]
            heights[2 * i + 1] = bars.max() if bars.size else 0.0

        return heights, indexes

    def build_curves(
        self,
        spectrum: np.ndarray,
        band: int,
    ) -> tuple[CurveSpec, CurveSpec] | None:
        """
        Populate the top and bottom curves for one band.

        Returns None for a silent band, after reshuffling it. The returned
        curves are shared between calls.
        """
        heights, indexes = self.band_peaks(spectrum, band)
        if heights.sum() < self.cfg.min_peak_height * len(indexes):
            self.reshuffle(band)
            return None

        start = self.band_indexes[band]
        total = self.band_indexes[band + 1] - start
        offset = self.offsets[band]
        padding = self.cfg.padding
        allowed_width = self.cfg.width - (2 * padding + offset)
        centre = self.cfg.height + 2 * self.cfg.vertical_offset

        top, bottom = self.curve_top, self.curve_bottom
        top.clear()
        bottom.clear()
        top.fill = bottom.fill = self.cfg.colors[band]

        for height, index in zip(heights, indexes):
            x = offset + padding + allowed_width * (index - start) / total
            top.add(x, (centre - height) / 2 + 1)
            bottom.add(x, (centre + height) / 2)

        return top, bottom

    def _draw_middle_line(self, frame: np.ndarray) -> None:
        """Horizontal line through the centre, fading out towards the sides."""
        row = int(self.cfg.height / 2 + self.cfg.vertical_offset)
        if not 0 <= row < self.cfg.height:
            return
        radius = self.cfg.width / 2 - self.cfg.padding + 14
        x = np.arange(self.cfg.width) + 0.5
        alpha = np.clip(1.0 - np.abs(x - self.cfg.width / 2) / radius, 0.0, 1.0)[:, None]
        line = np.asarray(self.cfg.line_color, dtype=np.float32) / 255.0
        frame[row] = frame[row] * (1.0 - alpha) + line * alpha

    def _band_layer(self, curves: tuple[CurveSpec, CurveSpec]) -> PillowSurface:
        surface = PillowSurface(self.cfg.width, self.cfg.height, background=(0, 0, 0, 255))
        for curve in curves:
            draw_curve(surface, curve)
        return surface

    def render_frame(self, buffer) -> np.ndarray:
        """
        Analyse one audio block and draw the waveform.

        Args:
            buffer: Mono samples, at least ``analyzer.fft_size`` long.

        Returns:
            (H, W, 3) uint8 RGB array.
        """
        spectrum = self.analyzer.analyze_to_bytes(buffer)

        background = np.asarray(ImageColor.getrgb(self.cfg.background)[:3], dtype=np.float32)
        frame = np.empty((self.cfg.height, self.cfg.width, 3), dtype=np.float32)
        frame[:] = background / 255.0
        self._draw_middle_line(frame)

        for band in range(self.cfg.n_bands):
            curves = self.build_curves(spectrum, band)
            if curves is None:
                continue
            layer = self._band_layer(curves).image.convert("RGB")

            # Additive blurred underlayer
            glow = layer.filter(ImageFilter.GaussianBlur(radius=self.cfg.blur_radius))
            glow_arr = np.asarray(glow, dtype=np.float32) / 255.0
            frame = np.clip(frame + glow_arr * self.cfg.glow_alpha, 0.0, 1.0)

            # Screen blend: result = 1 - (1-a)(1-b)
            solid = np.asarray(layer, dtype=np.float32) / 255.0
            frame = 1.0 - (1.0 - frame) * (1.0 - solid)

        return np.clip(np.rint(frame * 255), 0, 255).astype(np.uint8)

    def render_stream(self, buffers: Iterable) -> Iterator[np.ndarray]:
        """Yield one rendered frame per audio block, in order."""
        for buffer in buffers:
            yield self.render_frame(buffer)
