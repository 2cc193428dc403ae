"""Tests for the metrics summary source."""

import pytest

from orgvault.backup.metrics import MetricsSource, is_employee_billed


@pytest.mark.parametrize("employee, expected", [
    ({"currentStatus": "Billed"}, True),
    ({"currentStatus": " active "}, True),
    ({"currentStatus": "Bench"}, False),
    ({"isBilled": False, "currentStatus": "Billed"}, False),
    ({"billable": True, "currentStatus": "Bench"}, True),
    ({}, False),
    ("E1", False),
])
def test_is_employee_billed(employee, expected):
    assert is_employee_billed(employee) is expected


@pytest.mark.asyncio
async def test_summary(collections, sample_records, populate):
    await populate(collections, sample_records)

    summary = await MetricsSource(collections).summarize()

    assert summary["totals"]["employees"] == 2
    assert summary["totals"]["instructions"] == 1
    assert summary["employees"] == {"total": 2, "billed": 1, "notBilled": 1, "billingRate": 0.5}
    assert summary["learningPaths"] == {"enrolledCount": 4, "completedCount": 1, "inProgressCount": 3}


@pytest.mark.asyncio
async def test_summary_empty(collections):
    summary = await MetricsSource(collections).summarize()

    assert summary["employees"]["billingRate"] == 0
    assert all(count == 0 for count in summary["totals"].values())
