"""Drawing surfaces for path segments."""

from spectracurve.render.surface import PathSurface, PillowSurface, draw_curve

__all__ = ["PathSurface", "PillowSurface", "draw_curve"]
