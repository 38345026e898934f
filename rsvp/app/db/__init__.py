"""Database package for the RSVP service.

This package provides:
- Database models (Invite, Guest)
- Per-application async engine and session management
- CRUD operations for invites and guests
- FastAPI dependency injection support
"""

from rsvp.app.db.base import Base
from rsvp.app.db.models import Guest, Invite
from rsvp.app.db.async_session import (
    SessionDep,
    close_async_engine,
    create_engine_from_settings,
    create_session_maker,
    get_db,
    init_async_db,
)

__all__ = [
    # Base
    "Base",
    # Models
    "Guest",
    "Invite",
    # Session
    "SessionDep",
    "close_async_engine",
    "create_engine_from_settings",
    "create_session_maker",
    "get_db",
    "init_async_db",
]
