"""Input sanitization for guest-supplied text.

``sanitize_input`` is applied before validation and storage. It is
defense-in-depth, not an HTML sanitizer: anything rendered back to a page
must also go through ``sanitize_for_display``. Storage keeps the
sanitized-but-unescaped form.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

MAX_INPUT_LENGTH = 1000

_ANGLE_BRACKETS = re.compile(r"[<>]")
_JAVASCRIPT_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)

# Ampersand must come first so later entities are not double-encoded.
_DISPLAY_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
    ("/", "&#x2F;"),
)


def _strip_dangerous(text: str) -> str:
    text = _ANGLE_BRACKETS.sub("", text)
    text = _JAVASCRIPT_SCHEME.sub("", text)
    return _EVENT_HANDLER.sub("", text)


def sanitize_input(raw: Any) -> str:
    """Trim, bound and strip dangerous substrings from user input.

    Non-string input yields an empty string. Removal is repeated until the
    text stops changing, so nested payloads such as ``javajavascript:script:``
    cannot reassemble and the function is idempotent.
    """
    if not isinstance(raw, str):
        return ""

    text = raw.strip()[:MAX_INPUT_LENGTH]
    while True:
        cleaned = _strip_dangerous(text).strip()
        if cleaned == text:
            return text
        text = cleaned


def sanitize_for_display(raw: Any) -> str:
    """HTML-entity encode text for rendering. Never use before storage."""
    if not isinstance(raw, str):
        return ""

    for char, entity in _DISPLAY_ESCAPES:
        raw = raw.replace(char, entity)
    return raw


class FieldKind(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    WRONG_TYPE = "wrong_type"


@dataclass(frozen=True)
class RawField:
    """A single field pulled out of an untrusted JSON payload.

    Makes the "non-string becomes empty" coercion explicit: a field is either
    a string, missing (or null), or some other JSON type.
    """

    kind: FieldKind
    value: Any = None

    @classmethod
    def of(cls, value: Any) -> "RawField":
        if value is None:
            return cls(FieldKind.ABSENT)
        if isinstance(value, str):
            return cls(FieldKind.PRESENT, value)
        return cls(FieldKind.WRONG_TYPE, value)

    @classmethod
    def from_mapping(cls, data: Any, key: str) -> "RawField":
        if not isinstance(data, dict):
            return cls(FieldKind.ABSENT)
        return cls.of(data.get(key))

    @property
    def is_present(self) -> bool:
        return self.kind is FieldKind.PRESENT

    @property
    def text(self) -> str:
        return self.value if self.kind is FieldKind.PRESENT else ""

    def sanitized(self) -> str:
        return sanitize_input(self.text)
