"""Invite management for the couple: list, create and reset invites."""

from typing import List, Optional

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from rsvp.app.api.deps import state_changing
from rsvp.app.api.schemas import AdminInviteOut, CreateInviteOut
from rsvp.app.core.logging import get_logger
from rsvp.app.db.async_session import SessionDep
from rsvp.app.db.crud import create_invite, get_invite_by_id, list_invites, reset_invite
from rsvp.app.db.models import Invite
from rsvp.app.exceptions import InviteNotFoundError, ValidationFailedError
from rsvp.app.services.sanitizer import sanitize_input
from rsvp.app.services.validators import (
    MAX_ADDITIONAL_GUESTS,
    VALIDATION_CONFIG,
    validate_message,
    validate_name,
)

logger = get_logger(__name__)

router = APIRouter()


class InviteCreate(BaseModel):
    guests: List[str] = Field(default_factory=list)
    message: Optional[str] = None


def _clean_guest_names(raw_names: List[str]) -> List[str]:
    """Sanitize and validate names, dropping blank entries.

    Raises:
        ValidationFailedError: On an empty list, too many names, or the
            first invalid name
    """
    names = [sanitize_input(n) for n in raw_names]
    names = [n for n in names if n]
    if not names:
        raise ValidationFailedError({"guests": "Guest list required"})
    if len(names) > MAX_ADDITIONAL_GUESTS + 1:
        raise ValidationFailedError({"guests": VALIDATION_CONFIG["guest_count"].error_message})

    for index, name in enumerate(names, start=1):
        check = validate_name(name)
        if not check.is_valid:
            raise ValidationFailedError({"guests": f"Guest {index}: {check.error}"})
    return names


@router.get("", response_model=List[AdminInviteOut])
async def list_all_invites(session: SessionDep) -> List[Invite]:
    """List all invites with their guests."""
    return await list_invites(session)


@router.post(
    "",
    response_model=CreateInviteOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=state_changing("post_operations"),
)
async def create_new_invite(data: InviteCreate, session: SessionDep) -> Invite:
    """Create an invite with a fresh random code."""
    names = _clean_guest_names(data.guests)

    message = sanitize_input(data.message or "")
    message_check = validate_message(message)
    if not message_check.is_valid:
        raise ValidationFailedError({"message": message_check.error})

    invite = await create_invite(session, names, message=message or None)
    logger.info(
        "Invite created",
        extra={"invite_id": invite.id, "guests": len(names)},
    )
    return invite


@router.post(
    "/{invite_id}/reset",
    response_model=AdminInviteOut,
    dependencies=state_changing("post_operations"),
)
async def reset_existing_invite(invite_id: str, session: SessionDep) -> Invite:
    """Clear the message and every guest's response."""
    invite = await get_invite_by_id(session, invite_id)
    if invite is None:
        raise InviteNotFoundError()
    invite = await reset_invite(session, invite)
    logger.info("Invite reset", extra={"invite_id": invite.id})
    return invite
