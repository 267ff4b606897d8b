# core/numbering.py

import re
from datetime import datetime, timezone
from typing import Optional, Protocol

from core.store import DocumentStore, QueryFilter

SEQUENCE_WIDTH = 4
PREFIX_UPPER_BOUND = "\uffff"

_TRAILING_NUMBER = re.compile(r"(\d+)$")


class SequenceStrategy(Protocol):
    def next_value(self, prefix: str) -> str: ...


class LatestRecordSequence:
    """
    Next identifier = suffix of the most recently created record + 1.

    Best-effort only: two creators reading the same latest record will
    produce the same value. Swap in a counter-backed strategy where
    uniqueness matters.
    """

    def __init__(self, store: DocumentStore, collection: str, field: str, scope_to_prefix: bool = False):
        self.store = store
        self.collection = collection
        self.field = field
        self.scope_to_prefix = scope_to_prefix

    def _latest_value(self, prefix: str) -> Optional[str]:
        filters = []
        if self.scope_to_prefix:
            # Every value starting with `prefix` sorts inside [prefix, prefix + U+FFFF)
            filters += [
                QueryFilter.where(self.field, ">=", prefix),
                QueryFilter.where(self.field, "<", prefix + PREFIX_UPPER_BOUND),
            ]
        filters += [
            QueryFilter.order_by("created_at", descending=True),
            QueryFilter.limit(1),
        ]

        rows = self.store.query(self.collection, filters)
        if not rows:
            return None
        return rows[0].get(self.field)

    def next_value(self, prefix: str) -> str:
        latest = self._latest_value(prefix)

        next_number = 1
        if latest:
            match = _TRAILING_NUMBER.search(str(latest))
            if match:
                next_number = int(match.group(1)) + 1

        return f"{prefix}{next_number:0{SEQUENCE_WIDTH}d}"


# ============================================================
# Prefixes
# ============================================================
def job_number_prefix(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"JOB-{now.year}{now.month:02d}-"


def proposal_number_prefix(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"PROP-{now.year}-"


def sku_prefix(category: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{category[:3].upper()}-{str(now.year)[-2:]}-"
