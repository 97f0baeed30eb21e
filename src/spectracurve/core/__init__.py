"""Core analysis and interpolation modules."""

from spectracurve.core.analyzer import AnalyzerConfig, SpectrumAnalyzer
from spectracurve.core.curve import CurveSpec, interpolate

__all__ = ["AnalyzerConfig", "SpectrumAnalyzer", "CurveSpec", "interpolate"]
