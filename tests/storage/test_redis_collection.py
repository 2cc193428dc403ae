"""Tests for the Redis collection backend with a mocked client."""

import json
import pytest
from unittest.mock import MagicMock

from orgvault._storage import RedisCollection
from orgvault.errors import CreateErrorKind, RecordCreateError


class FakeRedis:
    """Just enough of redis.asyncio.Redis for RedisCollection.

    ``eval`` runs the collection's create script in Python, all at once, the
    way Redis runs a script. ``eval_failures`` makes the next calls raise
    before anything is written.
    """

    def __init__(self):
        self.hashes = {}
        self.lists = {}
        self.eval_failures = 0
        self.eval_calls = 0

    async def eval(self, script, numkeys, *keys_and_args):
        self.eval_calls += 1
        if self.eval_failures:
            self.eval_failures -= 1
            raise ConnectionError("Connection reset by peer")

        keys = keys_and_args[:numkeys]
        args = keys_and_args[numkeys:]
        if args[0] in self.hashes.get(keys[0], {}):
            return 1
        for i in range(2, numkeys):
            if args[i] in self.hashes.get(keys[i], {}):
                return i
        self.hashes.setdefault(keys[0], {})[args[0]] = args[1]
        for i in range(2, numkeys):
            self.hashes.setdefault(keys[i], {})[args[i]] = args[0]
        self.lists.setdefault(keys[1], []).append(args[0])
        return 0

    async def hmget(self, key, fields):
        bucket = self.hashes.get(key, {})
        return [bucket.get(f) for f in fields]

    async def lrange(self, key, start, end):
        items = self.lists.get(key, [])
        return items[start:] if end == -1 else items[start:end + 1]

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += int(self.hashes.pop(key, None) is not None)
            removed += int(self.lists.pop(key, None) is not None)
        return removed


@pytest.fixture
def fake_client():
    return FakeRedis()


@pytest.fixture
def connection(fake_client):
    conn = MagicMock()
    conn.client = fake_client
    return conn


@pytest.fixture
def instructions(connection):
    return RedisCollection(
        name="instructions",
        key_field="id",
        unique_fields=("slug",),
        connection=connection,
        key_prefix="test",
    )


def test_requires_connection():
    with pytest.raises(ValueError, match="requires a StorageConnection"):
        RedisCollection(name="employees", key_field="employeeId")


@pytest.mark.asyncio
async def test_create_writes_record_order_and_index(instructions, fake_client):
    await instructions.create({"id": "I1", "slug": "onboarding"})

    stored = json.loads(fake_client.hashes["test:instructions:records"]["I1"])
    assert stored["slug"] == "onboarding"
    assert "createdAt" in stored
    assert fake_client.lists["test:instructions:order"] == ["I1"]
    assert fake_client.hashes["test:instructions:unique:slug"] == {"onboarding": "I1"}


@pytest.mark.asyncio
async def test_list_preserves_insertion_order(instructions):
    for record_id in ("I3", "I1", "I2"):
        await instructions.create({"id": record_id})

    assert [r["id"] for r in await instructions.list()] == ["I3", "I1", "I2"]


@pytest.mark.asyncio
async def test_duplicate_key(instructions):
    await instructions.create({"id": "I1"})

    with pytest.raises(RecordCreateError) as exc_info:
        await instructions.create({"id": "I1"})

    assert exc_info.value.kind == CreateErrorKind.DUPLICATE_KEY
    assert len(await instructions.list()) == 1


@pytest.mark.asyncio
async def test_duplicate_slug_writes_nothing(instructions, fake_client):
    await instructions.create({"id": "I1", "slug": "onboarding"})

    with pytest.raises(RecordCreateError) as exc_info:
        await instructions.create({"id": "I2", "slug": "onboarding"})

    assert exc_info.value.field == "slug"
    assert "I2" not in fake_client.hashes["test:instructions:records"]
    assert fake_client.lists["test:instructions:order"] == ["I1"]
    assert fake_client.hashes["test:instructions:unique:slug"] == {"onboarding": "I1"}


@pytest.mark.asyncio
async def test_validation_error_touches_nothing(instructions, fake_client):
    with pytest.raises(RecordCreateError) as exc_info:
        await instructions.create({"slug": "no-id"})

    assert exc_info.value.kind == CreateErrorKind.VALIDATION
    assert fake_client.hashes == {}


@pytest.mark.asyncio
async def test_list_skips_undecodable_entries(instructions, fake_client):
    await instructions.create({"id": "I1"})
    fake_client.hashes["test:instructions:records"]["I2"] = "{not json"
    fake_client.lists["test:instructions:order"].append("I2")

    assert [r["id"] for r in await instructions.list()] == ["I1"]


@pytest.mark.asyncio
async def test_clear_removes_all_keys(instructions, fake_client):
    await instructions.create({"id": "I1", "slug": "onboarding"})
    await instructions.clear()

    assert fake_client.hashes == {}
    assert fake_client.lists == {}
    assert await instructions.list() == []


@pytest.mark.asyncio
async def test_failed_create_leaves_no_partial_record(instructions, fake_client):
    fake_client.eval_failures = 1

    with pytest.raises(ConnectionError):
        await instructions.create({"id": "I1", "slug": "onboarding"})

    assert await instructions.list() == []
    assert fake_client.hashes == {}

    # The retry is not reported as a duplicate
    await instructions.create({"id": "I1", "slug": "onboarding"})
    assert [r["id"] for r in await instructions.list()] == ["I1"]
    assert fake_client.eval_calls == 2


@pytest.mark.asyncio
async def test_create_is_a_single_round_trip(instructions, fake_client):
    await instructions.create({"id": "I1", "slug": "onboarding"})
    await instructions.create({"id": "I2"})

    assert fake_client.eval_calls == 2
    assert fake_client.hashes["test:instructions:unique:slug"] == {"onboarding": "I1"}
