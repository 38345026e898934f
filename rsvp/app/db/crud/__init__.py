"""CRUD operations package.

- invite.py: invite lookup, listing, creation and reset
- guest.py: guest search and applying an RSVP
"""

# Invite operations
from rsvp.app.db.crud.invite import (
    create_invite,
    generate_invite_code,
    get_invite_by_code,
    get_invite_by_id,
    list_invites,
    reset_invite,
)

# Guest operations
from rsvp.app.db.crud.guest import (
    apply_rsvp,
    search_guests_by_prefix,
)

__all__ = [
    # Invite operations
    "create_invite",
    "generate_invite_code",
    "get_invite_by_code",
    "get_invite_by_id",
    "list_invites",
    "reset_invite",
    # Guest operations
    "apply_rsvp",
    "search_guests_by_prefix",
]
