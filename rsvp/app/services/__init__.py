"""Input sanitization and validation services."""

from rsvp.app.services.rsvp_validator import (
    GuestStatus,
    RSVPValidationResult,
    SanitizedGuest,
    SanitizedRSVP,
    validate_rsvp_payload,
)
from rsvp.app.services.sanitizer import RawField, sanitize_for_display, sanitize_input
from rsvp.app.services.validators import (
    MAX_ADDITIONAL_GUESTS,
    VALIDATION_CONFIG,
    ValidationResult,
    validate_dietary_notes,
    validate_guest_count,
    validate_message,
    validate_name,
)

__all__ = [
    "GuestStatus",
    "RSVPValidationResult",
    "SanitizedGuest",
    "SanitizedRSVP",
    "validate_rsvp_payload",
    "RawField",
    "sanitize_for_display",
    "sanitize_input",
    "MAX_ADDITIONAL_GUESTS",
    "VALIDATION_CONFIG",
    "ValidationResult",
    "validate_dietary_notes",
    "validate_guest_count",
    "validate_message",
    "validate_name",
]
