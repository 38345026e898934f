"""API endpoints package for the RSVP service."""

from rsvp.app.api.admin import router as admin_router
from rsvp.app.api.csrf import router as csrf_router
from rsvp.app.api.guests import router as guests_router
from rsvp.app.api.rsvp import router as rsvp_router

__all__ = [
    "admin_router",
    "csrf_router",
    "guests_router",
    "rsvp_router",
]
