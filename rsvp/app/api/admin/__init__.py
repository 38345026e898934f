"""Admin endpoints for managing invites."""

from rsvp.app.api.admin.router import router

__all__ = ["router"]
