"""Core utilities for the RSVP service."""

from rsvp.app.core.config import Settings, settings
from rsvp.app.core.logging import get_logger, setup_logging
from rsvp.app.core.sweeper import PeriodicSweeper

__all__ = [
    "Settings",
    "settings",
    "get_logger",
    "setup_logging",
    "PeriodicSweeper",
]
