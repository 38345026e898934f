from fastapi import APIRouter

router = APIRouter(prefix="/api/admin", tags=["admin"])

# Sub-routers will be included here
from . import invites

router.include_router(invites.router, prefix="/invites", tags=["admin-invites"])
