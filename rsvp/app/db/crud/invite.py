"""Invite CRUD operations."""
import secrets
import uuid
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rsvp.app.db.models import Guest, Invite, utcnow
from rsvp.app.services.rsvp_validator import GuestStatus

# No 0/O or 1/I so codes survive being read aloud or handwritten
INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 6
MAX_CODE_ATTEMPTS = 10


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


def normalize_invite_code(code: str) -> str:
    return code.strip().upper()


async def get_invite_by_code(
    session: AsyncSession,
    invite_code: str
) -> Optional[Invite]:
    """Get an invite (with its guests) by its shareable code.

    Args:
        session: Database session from FastAPI dependency
        invite_code: Code as typed by the guest; case and surrounding
                     whitespace are ignored

    Returns:
        Invite object if found, None otherwise
    """
    result = await session.execute(
        select(Invite).where(Invite.invite_code == normalize_invite_code(invite_code))
    )
    return result.scalar_one_or_none()


async def get_invite_by_id(
    session: AsyncSession,
    invite_id: str
) -> Optional[Invite]:
    result = await session.execute(select(Invite).where(Invite.id == invite_id))
    return result.scalar_one_or_none()


async def list_invites(session: AsyncSession) -> List[Invite]:
    """List all invites, newest first."""
    result = await session.execute(
        select(Invite).order_by(Invite.created_at.desc(), Invite.invite_code)
    )
    return list(result.scalars().all())


async def invite_code_exists(session: AsyncSession, invite_code: str) -> bool:
    result = await session.execute(
        select(Invite.id).where(Invite.invite_code == invite_code)
    )
    return result.first() is not None


async def create_invite(
    session: AsyncSession,
    guest_names: Sequence[str],
    message: Optional[str] = None,
    auto_commit: bool = True
) -> Invite:
    """Create an invite with a fresh random code and its guest list.

    Args:
        session: Database session from FastAPI dependency
        guest_names: Already validated guest names, in display order
        message: Optional note stored on the invite
        auto_commit: Whether to commit the transaction. Set to False
                     if you want to control transaction boundaries manually.

    Returns:
        The created Invite object

    Raises:
        RuntimeError: If no unused code was found after MAX_CODE_ATTEMPTS
    """
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_invite_code()
        if not await invite_code_exists(session, code):
            break
    else:
        raise RuntimeError("Could not allocate a unique invite code")

    now = utcnow()
    invite = Invite(
        id=str(uuid.uuid4()),
        invite_code=code,
        message=message or None,
        created_at=now,
        updated_at=now,
    )
    invite.guests = [
        Guest(
            id=str(uuid.uuid4()),
            name=name,
            status=GuestStatus.UNSELECTED.value,
            created_at=now,
            updated_at=now,
        )
        for name in guest_names
    ]
    session.add(invite)
    if auto_commit:
        await session.commit()
    else:
        await session.flush()
    return invite


async def reset_invite(
    session: AsyncSession,
    invite: Invite,
    auto_commit: bool = True
) -> Invite:
    """Clear the invite message and every guest's response."""
    now = utcnow()
    invite.message = None
    invite.updated_at = now
    for guest in invite.guests:
        guest.status = GuestStatus.UNSELECTED.value
        guest.diet_notes = None
        guest.updated_at = now

    if auto_commit:
        await session.commit()
    return invite
