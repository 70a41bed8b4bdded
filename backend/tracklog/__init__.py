"""Tracklog - time tracking, streaks and heatmap backend."""

__version__ = "0.3.0"
