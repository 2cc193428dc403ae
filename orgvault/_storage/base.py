"""Collection source contract shared by every storage backend."""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..errors import CreateErrorKind, RecordCreateError
from .._utils import utc_now_iso

Record = Dict[str, Any]

# Collection name -> primary key field
COLLECTION_KEYS: Dict[str, str] = {
    "employees": "employeeId",
    "skillFactories": "skillFactoryId",
    "learningPaths": "learningPathName",
    "assessments": "assessmentId",
    "instructions": "id",
    "announcements": "id",
}

# Secondary unique fields, enforced only when present on the record
COLLECTION_UNIQUE_FIELDS: Dict[str, Tuple[str, ...]] = {
    "instructions": ("slug",),
}

# Employees first: other collections reference employee ids.
COLLECTION_NAMES: Tuple[str, ...] = (
    "employees",
    "skillFactories",
    "learningPaths",
    "assessments",
    "instructions",
    "announcements",
)


@dataclass
class BaseCollection(ABC):
    """A name-addressed persistence unit holding one record type."""

    name: str
    key_field: str
    unique_fields: Tuple[str, ...] = field(default_factory=tuple)

    @abstractmethod
    async def list(self) -> List[Record]:
        """Return every record in insertion order."""
        raise NotImplementedError

    @abstractmethod
    async def create(self, record: Record) -> Record:
        """Insert a record.

        Raises:
            RecordCreateError: with kind DUPLICATE_KEY or VALIDATION
        """
        raise NotImplementedError

    @abstractmethod
    async def clear(self) -> None:
        """Remove every record."""
        raise NotImplementedError

    def prepare(self, record: Any) -> Tuple[str, Record]:
        """Validate a candidate record and return (key, normalized copy)."""
        if not isinstance(record, dict):
            raise RecordCreateError(
                CreateErrorKind.VALIDATION,
                f"{self.name} record must be a JSON object.",
            )

        key = record.get(self.key_field)
        if not isinstance(key, str) or not key.strip():
            raise RecordCreateError(
                CreateErrorKind.VALIDATION,
                f"{self.key_field} is required.",
                field=self.key_field,
            )

        normalized = copy.deepcopy(record)
        normalized[self.key_field] = key.strip()

        now = utc_now_iso()
        normalized.setdefault("createdAt", now)
        normalized.setdefault("updatedAt", normalized["createdAt"])
        return normalized[self.key_field], normalized

    def unique_values(self, record: Record) -> Dict[str, str]:
        """Secondary unique values present on a record."""
        values = {}
        for unique_field in self.unique_fields:
            value = record.get(unique_field)
            if isinstance(value, str) and value.strip():
                values[unique_field] = value.strip()
        return values

    def duplicate_error(self, field_name: Optional[str] = None) -> RecordCreateError:
        field_name = field_name or self.key_field
        return RecordCreateError(
            CreateErrorKind.DUPLICATE_KEY,
            f"{self.name} record with this {field_name} already exists.",
            field=field_name,
        )
