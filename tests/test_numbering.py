# tests/test_numbering.py

from datetime import datetime, timezone

from core.numbering import (
    LatestRecordSequence,
    job_number_prefix,
    proposal_number_prefix,
    sku_prefix,
)


NOW = datetime(2026, 3, 15, tzinfo=timezone.utc)


def _seed(store, collection, field, values):
    for i, value in enumerate(values):
        store.create(collection, {field: value, "created_at": f"2026-03-0{i + 1}T00:00:00+00:00"})


def test_prefixes():
    assert job_number_prefix(NOW) == "JOB-202603-"
    assert proposal_number_prefix(NOW) == "PROP-2026-"
    assert sku_prefix("panel", NOW) == "PAN-26-"
    assert sku_prefix("inverter", NOW) == "INV-26-"


def test_first_value_starts_at_one(store):
    sequence = LatestRecordSequence(store, "jobs", "job_number")
    assert sequence.next_value("JOB-202603-") == "JOB-202603-0001"


def test_increments_latest_record(store):
    _seed(store, "jobs", "job_number", ["JOB-202603-0001", "JOB-202603-0002"])
    sequence = LatestRecordSequence(store, "jobs", "job_number")
    assert sequence.next_value("JOB-202603-") == "JOB-202603-0003"


def test_unscoped_sequence_carries_across_prefixes(store):
    _seed(store, "proposals", "proposal_number", ["PROP-2025-0041"])
    sequence = LatestRecordSequence(store, "proposals", "proposal_number")
    assert sequence.next_value("PROP-2026-") == "PROP-2026-0042"


def test_scoped_sequence_restarts_for_new_prefix(store):
    _seed(store, "products", "sku", ["PAN-26-0007"])
    sequence = LatestRecordSequence(store, "products", "sku", scope_to_prefix=True)

    assert sequence.next_value("PAN-26-") == "PAN-26-0008"
    assert sequence.next_value("INV-26-") == "INV-26-0001"


def test_scoped_sequence_skips_newer_records_of_other_prefixes(store):
    _seed(store, "products", "sku", ["PAN-26-0007", "INV-26-0001", "BAT-26-0003"])
    sequence = LatestRecordSequence(store, "products", "sku", scope_to_prefix=True)

    assert sequence.next_value("PAN-26-") == "PAN-26-0008"
    assert sequence.next_value("INV-26-") == "INV-26-0002"


def test_latest_without_trailing_number(store):
    _seed(store, "jobs", "job_number", ["legacy"])
    sequence = LatestRecordSequence(store, "jobs", "job_number")
    assert sequence.next_value("JOB-202603-") == "JOB-202603-0001"
