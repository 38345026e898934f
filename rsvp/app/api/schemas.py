"""Request and response models for the RSVP API."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class GuestOut(APIModel):
    id: str
    name: str
    status: str
    diet_notes: Optional[str] = None


class InviteOut(APIModel):
    id: str
    invite_code: str
    message: Optional[str] = None
    guests: List[GuestOut] = []
    responded: bool = Field(default=False, validation_alias="has_response")


class AdminInviteOut(InviteOut):
    created_at: datetime
    updated_at: datetime


class GuestSearchHit(APIModel):
    id: str
    name: str
    dietary_notes: Optional[str] = Field(default=None, validation_alias="diet_notes")


class GuestSearchOut(APIModel):
    results: List[GuestSearchHit] = []


class CSRFTokenOut(APIModel):
    token: str
    expires_at: int


class CreateInviteOut(APIModel):
    id: str
    invite_code: str
