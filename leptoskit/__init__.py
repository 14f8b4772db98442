"""Helpers for building, serving and live-reloading full-stack web projects."""

__version__ = "0.2.35"