"""Utility helpers for the pool localizer."""

from .visualization import DebugImageCollector, draw_circles, draw_lines

__all__ = ["DebugImageCollector", "draw_circles", "draw_lines"]
