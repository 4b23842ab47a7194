"""
Array-field codec.

Some columns (jump features and images, copilot specialties, API key scopes,
referral channels) hold an ordered list of strings. SQLite has no array type,
so the list is stored as JSON array text in a single TEXT column.

The conversion happens at the persistence boundary only: the repository
encodes StringList values on write and decodes them on read. Nothing above
the repository sees the raw text.
"""

import json
from collections.abc import Iterable

from kustoc.errors import ArrayFieldError, ValidationError


class StringList(list):
    """Ordered list of strings as held by an array-valued column."""

    def __init__(self, values: Iterable = ()):
        super().__init__(str(v) for v in values)

    def to_db(self) -> str:
        return json.dumps(list(self), ensure_ascii=False)

    @classmethod
    def from_db(cls, text: str | None) -> "StringList":
        if text is None or not str(text).strip():
            return cls()
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as e:
            raise ArrayFieldError(f"Stored value is not JSON array text: {text!r}") from e
        if not isinstance(decoded, list):
            raise ArrayFieldError(f"Stored value is JSON but not an array: {text!r}")
        return cls(decoded)


def encode_list(values: Iterable[str] | None) -> str:
    """Encode a list of strings as JSON array text. None encodes as '[]'."""
    if values is None:
        return "[]"
    if isinstance(values, str):
        raise ValidationError("Expected a list of strings, got a single string")
    return StringList(values).to_db()


def decode_list(text: str | None) -> list[str]:
    """Decode JSON array text. Null or empty text decodes to []."""
    return list(StringList.from_db(text))


def coerce_list(value) -> list[str]:
    """
    Normalize request input for an array field.

    A list is kept exactly as sent (every item must be a string). A
    comma-separated string, which the SPA forms send, is split, stripped
    and emptied of blank parts.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            if not isinstance(item, str):
                raise ValidationError(f"Expected a list of strings, item {i} is {type(item).__name__}")
        return list(value)
    raise ValidationError(f"Expected a list or comma-separated string, got {type(value).__name__}")


def salvage_list(text: str | None) -> list[str]:
    """
    Read array text written before every array column held JSON.

    JSON array text decodes as usual; anything else is taken as the
    comma-separated form older databases stored.
    """
    try:
        return decode_list(text)
    except ArrayFieldError:
        return coerce_list(str(text))
