"""Guest CRUD operations."""
import uuid
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rsvp.app.db.models import Guest, Invite, utcnow
from rsvp.app.exceptions import GuestNotOnInviteError
from rsvp.app.services.rsvp_validator import GuestStatus, SanitizedGuest, SanitizedRSVP

SEARCH_RESULT_LIMIT = 10


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def search_guests_by_prefix(
    session: AsyncSession,
    prefix: str,
    limit: int = SEARCH_RESULT_LIMIT
) -> List[Guest]:
    """Find guests whose name starts with ``prefix`` (case-insensitive).

    Args:
        session: Database session from FastAPI dependency
        prefix: Already validated search text; LIKE wildcards are escaped
        limit: Maximum number of guests returned

    Returns:
        Matching guests ordered by name
    """
    result = await session.execute(
        select(Guest)
        .where(Guest.name.ilike(f"{_escape_like(prefix)}%", escape="\\"))
        .order_by(Guest.name)
        .limit(limit)
    )
    return list(result.scalars().all())


def _find_guest(
    invite: Invite,
    wanted: SanitizedGuest,
    taken: set
) -> Optional[Guest]:
    """Match a submitted guest to a stored one by id, then by name."""
    candidates = [g for g in invite.guests if g.id not in taken]
    if wanted.id:
        for guest in candidates:
            if guest.id == wanted.id:
                return guest
    folded = wanted.name.casefold()
    for guest in candidates:
        if guest.name.casefold() == folded:
            return guest
    return None


async def apply_rsvp(
    session: AsyncSession,
    invite: Invite,
    rsvp: SanitizedRSVP,
    auto_commit: bool = True
) -> Invite:
    """Store a validated RSVP on ``invite``.

    The primary guest must already be on the invite. Plus-ones are matched to
    existing guests by id or name and added when new. Guests on the invite who
    were not part of the submission are marked NOT_ATTENDING.

    Args:
        session: Database session from FastAPI dependency
        invite: The invite being answered (guests loaded)
        rsvp: Sanitized data from a valid validation result
        auto_commit: Whether to commit the transaction. Set to False
                     if you want to control transaction boundaries manually.

    Returns:
        The updated Invite

    Raises:
        GuestNotOnInviteError: If the primary guest is not on the invite
    """
    now = utcnow()
    taken: set = set()

    primary = _find_guest(invite, rsvp.primary_guest, taken)
    if primary is None:
        raise GuestNotOnInviteError(
            "We couldn't find that name on this invite. Please check the spelling."
        )

    updates: Dict[str, SanitizedGuest] = {}
    taken.add(primary.id)
    updates[primary.id] = rsvp.primary_guest

    for submitted in rsvp.guests[1:]:
        stored = _find_guest(invite, submitted, taken)
        if stored is None:
            stored = Guest(
                id=str(uuid.uuid4()),
                name=submitted.name,
                created_at=now,
            )
            invite.guests.append(stored)
        taken.add(stored.id)
        updates[stored.id] = submitted

    for guest in invite.guests:
        submitted = updates.get(guest.id)
        if submitted is None:
            guest.status = GuestStatus.NOT_ATTENDING.value
        else:
            guest.status = submitted.status.value
            guest.diet_notes = submitted.diet_notes or None
        guest.updated_at = now

    invite.message = rsvp.message or None
    invite.updated_at = now

    if auto_commit:
        await session.commit()
    else:
        await session.flush()
    return invite
