"""Visualization renderers."""

from spectracurve.visualizers.siri import SiriWaveform, WaveformConfig

__all__ = ["SiriWaveform", "WaveformConfig"]
