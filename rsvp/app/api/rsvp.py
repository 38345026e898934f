"""Guest-facing RSVP endpoints.

GET returns the invite and its guests. POST stores a response after the
origin, rate limit and CSRF checks and full payload validation.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from rsvp.app.api.deps import rate_limit, state_changing
from rsvp.app.api.schemas import InviteOut
from rsvp.app.core.logging import get_logger
from rsvp.app.db.async_session import SessionDep
from rsvp.app.db.crud import apply_rsvp, get_invite_by_code
from rsvp.app.db.models import Invite
from rsvp.app.exceptions import (
    InviteCodeRequiredError,
    InviteNotFoundError,
    ValidationFailedError,
)
from rsvp.app.services.rsvp_validator import validate_rsvp_payload

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["rsvp"])


async def _load_invite(session: SessionDep, invite_code: Optional[str]) -> Invite:
    code = invite_code.strip() if isinstance(invite_code, str) else ""
    if not code:
        raise InviteCodeRequiredError()
    invite = await get_invite_by_code(session, code)
    if invite is None:
        raise InviteNotFoundError()
    return invite


@router.get(
    "/rsvp",
    response_model=InviteOut,
    dependencies=[Depends(rate_limit("rsvp_read"))],
)
async def read_rsvp(
    session: SessionDep,
    invite_code: Optional[str] = Query(default=None, alias="inviteCode"),
) -> Invite:
    return await _load_invite(session, invite_code)


@router.post(
    "/rsvp",
    response_model=InviteOut,
    dependencies=state_changing("rsvp"),
)
async def submit_rsvp(
    session: SessionDep,
    payload: Any = Body(default=None),
) -> Invite:
    """Validate and store an RSVP.

    Attendance must be chosen on the first response to an invite. Once any
    guest on the invite has answered, a resubmission may leave it unselected.
    """
    data = payload if isinstance(payload, dict) else {}
    invite = await _load_invite(session, data.get("inviteCode"))

    result = validate_rsvp_payload(data, require_attendance=not invite.has_response)
    if not result.is_valid:
        logger.info(
            "RSVP rejected by validation",
            extra={"fields": sorted(result.errors)},
        )
        raise ValidationFailedError(result.errors)

    invite = await apply_rsvp(session, invite, result.sanitized_data)
    logger.info(
        "RSVP stored",
        extra={"invite_id": invite.id, "guests": len(result.sanitized_data.guests)},
    )
    return invite
