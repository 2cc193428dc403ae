"""Global pytest configuration and fixtures."""

import sys
import tempfile
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from orgvault.config import StorageConfig
from orgvault._storage import StorageFactory


@pytest.fixture
def temp_backup_dir():
    """Create temporary backup directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def collections():
    """Fresh in-memory collections, one per known collection name."""
    return StorageFactory.create_collections(StorageConfig(backend="memory"))


@pytest.fixture
def sample_records():
    """Small dataset touching every collection."""
    return {
        "employees": [
            {"employeeId": "E1", "name": "Ada", "currentStatus": "Billed"},
            {"employeeId": "E2", "name": "Grace", "currentStatus": "Bench"},
        ],
        "skillFactories": [{"skillFactoryId": "SF1", "name": "Cloud"}],
        "learningPaths": [
            {"learningPathName": "Kubernetes 101", "enrolledCount": 4, "completedCount": 1, "inProgressCount": 3},
        ],
        "assessments": [{"assessmentId": "A1", "title": "K8s basics"}],
        "instructions": [{"id": "I1", "slug": "onboarding", "title": "Onboarding"}],
        "announcements": [{"id": "N1", "title": "Welcome"}],
    }


@pytest.fixture
def populate():
    """Insert records into their collections in the given order."""

    async def _populate(collections, records):
        for name, items in records.items():
            for item in items:
                await collections[name].create(item)

    return _populate
