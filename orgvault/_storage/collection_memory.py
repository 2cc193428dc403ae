"""In-process collection backend for tests and local development."""

import copy
from dataclasses import dataclass, field
from typing import Dict, List

from .base import BaseCollection, Record
from .._utils import logger


@dataclass
class MemoryCollection(BaseCollection):
    """Dict-backed collection. Data is lost when the process exits."""

    _records: Dict[str, Record] = field(init=False, default_factory=dict)
    _unique_index: Dict[str, Dict[str, str]] = field(init=False, default_factory=dict)

    async def list(self) -> List[Record]:
        return [copy.deepcopy(record) for record in self._records.values()]

    async def create(self, record: Record) -> Record:
        key, normalized = self.prepare(record)

        if key in self._records:
            raise self.duplicate_error()

        unique_values = self.unique_values(normalized)
        for field_name, value in unique_values.items():
            if value in self._unique_index.get(field_name, {}):
                raise self.duplicate_error(field_name)

        self._records[key] = normalized
        for field_name, value in unique_values.items():
            self._unique_index.setdefault(field_name, {})[value] = key

        return copy.deepcopy(normalized)

    async def clear(self) -> None:
        count = len(self._records)
        self._records.clear()
        self._unique_index.clear()
        logger.debug(f"Cleared {count} records from memory collection: {self.name}")
