"""Per-field validation for RSVP form input."""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Optional

from rsvp.app.services.sanitizer import sanitize_input


@dataclass(frozen=True)
class FieldRule:
    max_length: int
    pattern: re.Pattern
    error_message: str


@dataclass(frozen=True)
class GuestCountRule:
    min: int
    max: int
    error_message: str


VALIDATION_CONFIG = MappingProxyType({
    "name": FieldRule(
        max_length=100,
        pattern=re.compile(r"[a-zA-Z\s\-'.]+"),
        error_message="Name can only contain letters, spaces, hyphens, apostrophes, and periods",
    ),
    "dietary_notes": FieldRule(
        max_length=500,
        pattern=re.compile(r"[a-zA-Z0-9\s\-:;',./()&]+"),
        error_message="Dietary notes contain invalid characters",
    ),
    "message": FieldRule(
        max_length=300,
        pattern=re.compile(r"[a-zA-Z0-9\s\-,.!?()]+"),
        error_message="Message contains invalid characters",
    ),
    "guest_count": GuestCountRule(
        min=1,
        max=20,
        error_message="You can RSVP up to 20 guests including yourself",
    ),
})

# The primary guest counts toward the total.
MAX_ADDITIONAL_GUESTS = VALIDATION_CONFIG["guest_count"].max - 1


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: Optional[str] = None


VALID = ValidationResult(is_valid=True)


def _check_rule(sanitized: str, rule: FieldRule, label: str) -> ValidationResult:
    if len(sanitized) > rule.max_length:
        return ValidationResult(False, f"{label} must be less than {rule.max_length} characters")
    if not rule.pattern.fullmatch(sanitized):
        return ValidationResult(False, rule.error_message)
    return VALID


def validate_name(name: Any) -> ValidationResult:
    """Required; letters, spaces, hyphens, apostrophes and periods only."""
    sanitized = sanitize_input(name)
    if not sanitized:
        return ValidationResult(False, "Name is required")
    return _check_rule(sanitized, VALIDATION_CONFIG["name"], "Name")


def validate_dietary_notes(notes: Any) -> ValidationResult:
    sanitized = sanitize_input(notes)
    if not sanitized:
        return VALID
    return _check_rule(sanitized, VALIDATION_CONFIG["dietary_notes"], "Dietary notes")


def validate_message(message: Any) -> ValidationResult:
    sanitized = sanitize_input(message)
    if not sanitized:
        return VALID
    return _check_rule(sanitized, VALIDATION_CONFIG["message"], "Message")


def validate_guest_count(count: Any) -> ValidationResult:
    rule = VALIDATION_CONFIG["guest_count"]
    # bool is an int subclass; True is not a head count
    if isinstance(count, bool) or not isinstance(count, int):
        return ValidationResult(False, rule.error_message)
    if count < rule.min or count > rule.max:
        return ValidationResult(False, rule.error_message)
    return VALID
