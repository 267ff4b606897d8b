# core/diff.py

import json
from typing import Any, Dict, Mapping


def _fallback(value: Any) -> str:
    # Stored timestamps come back as ISO strings
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _serialize(value: Any) -> str:
    """
    Canonical form used for equality: map keys sorted, sequences kept in order.
    Dates, enums and other non-JSON values compare by their string form.
    """
    return json.dumps(value, sort_keys=True, default=_fallback)


def compute_changes(existing: Mapping[str, Any], update: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Field-level diff between a stored document and a partial update.

    Only keys present in `update` are considered; a key shows up in the
    result when its serialized value differs from the stored one.

        >>> compute_changes({"a": 1, "b": 2}, {"a": 1, "b": 3})
        {'b': {'old': 2, 'new': 3}}
    """
    existing = existing or {}
    changes = {}

    for key, new_value in (update or {}).items():
        old_value = existing.get(key)
        if _serialize(old_value) != _serialize(new_value):
            changes[key] = {"old": old_value, "new": new_value}

    return changes


def has_changes(changes: Mapping[str, Any]) -> bool:
    return bool(changes)
