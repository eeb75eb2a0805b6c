"""
Shared fixtures for the curation service tests.
"""

from datetime import datetime, timezone

import pytest

from curation.models.place import PlaceRecord
from curation.services.curation_service import CurationService
from curation.services.place_persistence import FileSystemBackend, PlacePersistence
from curation.services.record_mutator import RecordMutator
from curation.services.resolution_policy import ResolutionPolicy


FIXED_NOW = datetime(2025, 3, 14, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock():
    """Clock that always reads FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def place():
    """A small but realistic Place working copy."""
    return PlaceRecord(
        place_id="P_TEST0001",
        place_name="Seongsan Sunrise Peak",
        creator_id="creator_1",
        status="draft",
        categories=["nature"],
        attributes={"withKids": False, "parking": "paid"},
        expert_tip_final="Go before 6am.",
        comments=[{"author": "kim", "content": "Windy at the top"}],
        tags=["hiking"],
    )


@pytest.fixture
def mutator(fixed_clock):
    return RecordMutator(policy=ResolutionPolicy(), clock=fixed_clock)


@pytest.fixture
def strict_mutator(fixed_clock):
    return RecordMutator(policy=ResolutionPolicy(), strict=True, clock=fixed_clock)


@pytest.fixture
def persistence(tmp_path):
    """File-backed persistence with a file-backed backup, both under tmp_path."""
    primary = FileSystemBackend(str(tmp_path / "primary"))
    backup = FileSystemBackend(str(tmp_path / "backup"), name="filesystem-backup")
    return PlacePersistence(primary, backup)


@pytest.fixture
def service(persistence, mutator):
    return CurationService(persistence, mutator)
