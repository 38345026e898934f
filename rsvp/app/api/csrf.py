"""CSRF token issuance endpoint."""

from fastapi import APIRouter, Depends, Response

from rsvp.app.api.deps import get_csrf_protector, rate_limit
from rsvp.app.api.schemas import CSRFTokenOut
from rsvp.app.middleware.csrf import CSRFProtector

router = APIRouter(prefix="/api", tags=["csrf"])


@router.get(
    "/csrf-token",
    response_model=CSRFTokenOut,
    dependencies=[Depends(rate_limit("rsvp_read"))],
)
async def issue_csrf_token(
    response: Response,
    protector: CSRFProtector = Depends(get_csrf_protector),
) -> CSRFTokenOut:
    """Issue a token in both the body and a Set-Cookie header.

    Page script echoes it back in the x-csrf-token header on the next
    state-changing request.
    """
    issued = protector.generate_token()
    response.headers["Set-Cookie"] = issued.cookie
    response.headers["Cache-Control"] = "no-store"
    return CSRFTokenOut(token=issued.token, expires_at=int(issued.expires_at))
