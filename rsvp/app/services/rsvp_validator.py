"""Validation and normalization of a whole RSVP submission.

A submission names the primary guest, their attendance, optional dietary
notes and message, and a list of additional guests (plus-ones)::

    {
        "id": "guest-uuid",            # optional
        "name": "Jane Doe",
        "attending": "ATTENDING",
        "dietaryNotes": "Vegetarian",
        "message": "See you there!",
        "additionalGuests": [{"name": "Bob", "dietaryNotes": ""}],
    }

The validator never raises for bad input. It returns every field error it
found together with the normalized guest list, which the caller persists only
when ``is_valid`` is true.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from rsvp.app.services.sanitizer import RawField
from rsvp.app.services.validators import (
    MAX_ADDITIONAL_GUESTS,
    VALIDATION_CONFIG,
    validate_dietary_notes,
    validate_message,
    validate_name,
)


class GuestStatus(str, Enum):
    ATTENDING = "ATTENDING"
    NOT_ATTENDING = "NOT_ATTENDING"
    UNSELECTED = "UNSELECTED"

    @classmethod
    def coerce(cls, value: Any) -> "GuestStatus":
        """Map raw input to a status; anything unrecognized is UNSELECTED."""
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        return cls.UNSELECTED


@dataclass
class AdditionalGuest:
    name: str
    dietary_notes: str
    id: Optional[str] = None


@dataclass
class SanitizedGuest:
    name: str
    diet_notes: str
    status: GuestStatus
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "dietNotes": self.diet_notes,
            "status": self.status.value,
        }


@dataclass
class SanitizedRSVP:
    name: str
    attending: GuestStatus
    dietary_notes: str
    message: str
    additional_guests: List[AdditionalGuest] = field(default_factory=list)
    guests: List[SanitizedGuest] = field(default_factory=list)
    id: Optional[str] = None

    @property
    def primary_guest(self) -> SanitizedGuest:
        return self.guests[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "attending": self.attending.value,
            "dietaryNotes": self.dietary_notes,
            "message": self.message,
            "additionalGuests": [
                {"id": g.id, "name": g.name, "dietaryNotes": g.dietary_notes}
                for g in self.additional_guests
            ],
            "guests": [g.to_dict() for g in self.guests],
        }


@dataclass
class RSVPValidationResult:
    is_valid: bool
    errors: Dict[str, str]
    sanitized_data: SanitizedRSVP


def _optional_id(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _sanitize_additional_guest(raw: Any) -> AdditionalGuest:
    return AdditionalGuest(
        name=RawField.from_mapping(raw, "name").sanitized(),
        dietary_notes=RawField.from_mapping(raw, "dietaryNotes").sanitized(),
        id=_optional_id(raw.get("id")) if isinstance(raw, dict) else None,
    )


def _collect_guest_errors(guests: List[AdditionalGuest]) -> List[str]:
    problems: List[str] = []
    for index, guest in enumerate(guests, start=1):
        if not guest.name:
            problems.append(f"Guest {index} name is required")
        else:
            name_check = validate_name(guest.name)
            if not name_check.is_valid:
                problems.append(f"Guest {index}: {name_check.error}")

        diet_check = validate_dietary_notes(guest.dietary_notes)
        if not diet_check.is_valid:
            problems.append(f"Guest {index}: {diet_check.error}")
    return problems


def validate_rsvp_payload(
    payload: Any,
    *,
    require_attendance: bool = True,
) -> RSVPValidationResult:
    """Sanitize and validate an RSVP submission.

    Args:
        payload: Decoded JSON body. Anything that is not a dict is treated as
            an empty submission.
        require_attendance: Reject an UNSELECTED status. Used for a first
            response; re-confirming an existing response tolerates it.

    Returns:
        RSVPValidationResult with ``errors`` keyed by submitted field name
        (``name``, ``attending``, ``dietaryNotes``, ``message``,
        ``additionalGuests``). Only the first plus-one problem is reported
        under ``additionalGuests``.
    """
    data = payload if isinstance(payload, dict) else {}
    errors: Dict[str, str] = {}

    status = GuestStatus.coerce(data.get("attending"))

    raw_guests = data.get("additionalGuests")
    raw_guests = raw_guests if isinstance(raw_guests, list) else []
    additional = [_sanitize_additional_guest(g) for g in raw_guests[:MAX_ADDITIONAL_GUESTS]]

    sanitized = SanitizedRSVP(
        id=_optional_id(data.get("id")),
        name=RawField.from_mapping(data, "name").sanitized(),
        attending=status,
        dietary_notes=RawField.from_mapping(data, "dietaryNotes").sanitized(),
        message=RawField.from_mapping(data, "message").sanitized(),
        additional_guests=additional,
    )

    name_check = validate_name(sanitized.name)
    if not name_check.is_valid:
        errors["name"] = name_check.error

    diet_check = validate_dietary_notes(sanitized.dietary_notes)
    if not diet_check.is_valid:
        errors["dietaryNotes"] = diet_check.error

    message_check = validate_message(sanitized.message)
    if not message_check.is_valid:
        errors["message"] = message_check.error

    if require_attendance and status is GuestStatus.UNSELECTED:
        errors["attending"] = "Please select if you will attend"

    guest_errors: List[str] = []
    if len(raw_guests) > MAX_ADDITIONAL_GUESTS:
        guest_errors.append(VALIDATION_CONFIG["guest_count"].error_message)
    guest_errors.extend(_collect_guest_errors(sanitized.additional_guests))
    if guest_errors:
        errors["additionalGuests"] = guest_errors[0]

    # Declining guests cannot bring plus-ones; whatever was sent is dropped.
    if status is not GuestStatus.ATTENDING:
        sanitized.additional_guests = []

    sanitized.guests = [
        SanitizedGuest(
            id=sanitized.id,
            name=sanitized.name,
            diet_notes=sanitized.dietary_notes,
            status=status,
        )
    ]
    sanitized.guests.extend(
        SanitizedGuest(
            id=guest.id,
            name=guest.name,
            diet_notes=guest.dietary_notes,
            status=GuestStatus.ATTENDING,
        )
        for guest in sanitized.additional_guests
    )

    return RSVPValidationResult(
        is_valid=not errors,
        errors=errors,
        sanitized_data=sanitized,
    )
