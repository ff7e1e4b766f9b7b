"""Route group exports."""

from . import delivery, dispatch, health

__all__ = ["delivery", "dispatch", "health"]
