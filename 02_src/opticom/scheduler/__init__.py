"""Background scheduler module."""

from .scheduler import BackgroundScheduler, IScheduler

__all__ = ["BackgroundScheduler", "IScheduler"]
