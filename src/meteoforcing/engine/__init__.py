"""Engine package resolving daily meteorology."""

from .resolve import MeteoResult, resolve_meteorology

__all__ = ["resolve_meteorology", "MeteoResult"]
