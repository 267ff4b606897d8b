# services/validation.py

import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[\d\s\-+()]{10,}$")
POSTAL_CODE_PATTERN = re.compile(r"^[A-Za-z0-9\s\-]{3,10}$")


def to_document(payload: Union[BaseModel, Dict[str, Any], None], partial: bool = False) -> Dict[str, Any]:
    """
    Normalize a request model or plain dict into a JSON-ready document.
    With `partial=True` only the fields the caller actually set are kept.
    """
    if payload is None:
        return {}
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(exclude_unset=partial)
    return jsonable_encoder(payload)


def as_datetime(value: Any) -> Optional[datetime]:
    """Stored timestamps come back as ISO strings; accept both forms."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value))


def is_valid_phone(value: Any) -> bool:
    return isinstance(value, str) and bool(PHONE_PATTERN.match(value))


def too_short(value: Any, minimum: int) -> bool:
    return not isinstance(value, str) or len(value.strip()) < minimum


def is_negative(value: Any) -> bool:
    return isinstance(value, (int, float)) and value < 0
