"""Normalization of loosely typed log identifiers."""

from __future__ import annotations

from typing import Union

from logview.errors import InvalidInputError

RawLogId = Union[str, int, float]

INVALID_LOG_ID = "Invalid log ID"


def normalize_log_id(value: object) -> str:
    """Return the canonical string form of a log identifier.

    Request bodies carry ``log_id`` either as a JSON string or a JSON number;
    both collapse to the same string here so lookups, storage and paths agree.
    The result is also used as a directory name, so separators and dot
    segments are refused.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(INVALID_LOG_ID)

    if isinstance(value, str):
        text = value.strip()
    elif isinstance(value, int):
        text = str(value)
    elif isinstance(value, float):
        if not value.is_integer():
            raise InvalidInputError(INVALID_LOG_ID)
        text = str(int(value))
    else:
        raise InvalidInputError(INVALID_LOG_ID)

    if not text or text in {".", ".."}:
        raise InvalidInputError(INVALID_LOG_ID)
    if any(char in text for char in ("/", "\\", "\0")):
        raise InvalidInputError(INVALID_LOG_ID)
    return text


def coerce_remote_id(value: object) -> str:
    """Best-effort string form of an ``id`` field from the remote search API."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
