"""Read-side metrics summary captured alongside the collections."""

import asyncio
from typing import Any, Dict, List, Mapping

from .._storage import BaseCollection, Record

_BILLED_FLAGS = ("isBilled", "billed", "is_billable", "isBillable", "billable")
_BILLED_STATUSES = {"billed", "active"}


def _non_negative_int(value: Any) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) and value >= 0 else 0


def is_employee_billed(employee: Any) -> bool:
    """Explicit boolean flag wins; otherwise infer from currentStatus."""
    if not isinstance(employee, dict):
        return False

    for flag in _BILLED_FLAGS:
        if isinstance(employee.get(flag), bool):
            return employee[flag]

    status = employee.get("currentStatus")
    return isinstance(status, str) and status.strip().lower() in _BILLED_STATUSES


class MetricsSource:
    """Aggregate view over the collections, captured as one object."""

    name = "metrics"

    def __init__(self, collections: Mapping[str, BaseCollection]):
        self.collections = collections

    async def summarize(self) -> Dict[str, Any]:
        names = list(self.collections)
        results = await asyncio.gather(*(self.collections[n].list() for n in names))
        data: Dict[str, List[Record]] = dict(zip(names, results))

        employees = data.get("employees", [])
        learning_paths = [lp for lp in data.get("learningPaths", []) if isinstance(lp, dict)]

        billed = sum(1 for e in employees if is_employee_billed(e))
        total_employees = len(employees)

        return {
            "totals": {name: len(records) for name, records in data.items()},
            "employees": {
                "total": total_employees,
                "billed": billed,
                "notBilled": total_employees - billed,
                "billingRate": billed / total_employees if total_employees else 0,
            },
            "learningPaths": {
                "enrolledCount": sum(_non_negative_int(lp.get("enrolledCount")) for lp in learning_paths),
                "completedCount": sum(_non_negative_int(lp.get("completedCount")) for lp in learning_paths),
                "inProgressCount": sum(_non_negative_int(lp.get("inProgressCount")) for lp in learning_paths),
            },
        }
