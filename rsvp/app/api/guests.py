"""Guest name search used by the RSVP form's autocomplete."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from rsvp.app.api.deps import rate_limit
from rsvp.app.api.schemas import GuestSearchOut
from rsvp.app.db.async_session import SessionDep
from rsvp.app.db.crud import get_invite_by_code, search_guests_by_prefix
from rsvp.app.exceptions import InvalidInviteSessionError, SearchUnauthorizedError
from rsvp.app.services.sanitizer import sanitize_input

router = APIRouter(prefix="/api/guests", tags=["guests"])

MIN_QUERY_LENGTH = 3
MIN_FIRST_NAME_LENGTH = 2


def searchable_prefix(query: str) -> Optional[str]:
    """Return the prefix to search for, or None when nothing may be shown.

    Names are only suggested once a full first name and a space have been
    typed, so a few letters cannot be used to enumerate the guest list.
    """
    query = query.strip()
    if len(query) < MIN_QUERY_LENGTH:
        return None

    cleaned = sanitize_input(query)
    if " " not in cleaned:
        return None
    first_name = cleaned.split()[0]
    if len(first_name) < MIN_FIRST_NAME_LENGTH:
        return None
    return cleaned


@router.get(
    "/search",
    response_model=GuestSearchOut,
    dependencies=[Depends(rate_limit("guest_search"))],
)
async def search_guests(
    session: SessionDep,
    invite_code: Optional[str] = Query(default=None, alias="inviteCode"),
    query: str = Query(default=""),
) -> dict:
    code = (invite_code or "").strip()
    if not code:
        raise SearchUnauthorizedError()
    if await get_invite_by_code(session, code) is None:
        raise InvalidInviteSessionError()

    prefix = searchable_prefix(query)
    if prefix is None:
        return {"results": []}

    guests = await search_guests_by_prefix(session, prefix)
    return {"results": guests}
