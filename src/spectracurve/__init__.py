"""Audio spectrum analysis and smooth curve fitting for reactive waveforms."""

from spectracurve.core.analyzer import AnalyzerConfig, SpectrumAnalyzer
from spectracurve.core.curve import CurveMode, CurveSpec, Point, interpolate, trace
from spectracurve.exceptions import (
    ConfigurationError,
    InsufficientPointsError,
    InvalidInputError,
    SpectraCurveError,
    UnsupportedWindowError,
)
from spectracurve.render.surface import PillowSurface, draw_curve
from spectracurve.visualizers.siri import SiriWaveform, WaveformConfig

__version__ = "0.1.0"
__all__ = [
    "AnalyzerConfig",
    "SpectrumAnalyzer",
    "CurveMode",
    "CurveSpec",
    "Point",
    "interpolate",
    "trace",
    "PillowSurface",
    "draw_curve",
    "SiriWaveform",
    "WaveformConfig",
    "SpectraCurveError",
    "InvalidInputError",
    "InsufficientPointsError",
    "UnsupportedWindowError",
    "ConfigurationError",
]
