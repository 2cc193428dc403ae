"""Redis-backed collection storage for production deployments."""

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .base import BaseCollection, Record
from .connection import StorageConnection
from .._utils import logger

_CREATE_OK = 0
_CREATE_DUPLICATE_KEY = 1

# KEYS: records hash, order list, then one index hash per unique field.
# ARGV: key, serialized record, then the unique values matching KEYS[3..].
# Returns 0 on insert, 1 on a duplicate key, 1 + n when the n-th unique
# value is already taken.
_CREATE_SCRIPT = """
if redis.call("HEXISTS", KEYS[1], ARGV[1]) == 1 then
    return 1
end
for i = 3, #KEYS do
    if redis.call("HEXISTS", KEYS[i], ARGV[i]) == 1 then
        return i - 1
    end
end
redis.call("HSET", KEYS[1], ARGV[1], ARGV[2])
for i = 3, #KEYS do
    redis.call("HSET", KEYS[i], ARGV[i], ARGV[1])
end
redis.call("RPUSH", KEYS[2], ARGV[1])
return 0
"""


@dataclass
class RedisCollection(BaseCollection):
    """Collection stored as a Redis hash plus an insertion-order list.

    Layout per collection:
        <prefix>:<name>:records        hash  key -> JSON record
        <prefix>:<name>:order          list  keys in insertion order
        <prefix>:<name>:unique:<field> hash  value -> key
    """

    connection: Optional[StorageConnection] = None
    key_prefix: str = "orgvault"

    _prefix: str = field(init=False, default="")

    def __post_init__(self):
        if self.connection is None:
            raise ValueError(f"RedisCollection {self.name} requires a StorageConnection")
        self._prefix = f"{self.key_prefix}:{self.name}"

    @property
    def _records_key(self) -> str:
        return f"{self._prefix}:records"

    @property
    def _order_key(self) -> str:
        return f"{self._prefix}:order"

    def _unique_key(self, field_name: str) -> str:
        return f"{self._prefix}:unique:{field_name}"

    def _serialize(self, record: Record) -> str:
        return json.dumps(record, default=str)

    def _deserialize(self, data: Any) -> Optional[Record]:
        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to deserialize record in {self.name}: {e}")
            return None

    async def list(self) -> List[Record]:
        client = self.connection.client
        keys = await client.lrange(self._order_key, 0, -1)
        if not keys:
            return []

        values = await client.hmget(self._records_key, keys)
        records = []
        for data in values:
            record = self._deserialize(data)
            if record is not None:
                records.append(record)
        return records

    async def create(self, record: Record) -> Record:
        key, normalized = self.prepare(record)
        unique = list(self.unique_values(normalized).items())

        keys = [self._records_key, self._order_key]
        keys.extend(self._unique_key(field_name) for field_name, _ in unique)
        args = [key, self._serialize(normalized)]
        args.extend(value for _, value in unique)

        # Check and insert run as one script so a failed call leaves nothing behind
        status = int(await self.connection.client.eval(_CREATE_SCRIPT, len(keys), *keys, *args))
        if status == _CREATE_DUPLICATE_KEY:
            raise self.duplicate_error()
        if status != _CREATE_OK:
            raise self.duplicate_error(unique[status - _CREATE_DUPLICATE_KEY - 1][0])
        return normalized

    async def clear(self) -> None:
        client = self.connection.client
        keys = [self._records_key, self._order_key]
        keys.extend(self._unique_key(f) for f in self.unique_fields)
        await client.delete(*keys)
        logger.info(f"Cleared Redis collection: {self.name}")
