"""
Curation service tests: optimistic updates with background persistence.
"""

import asyncio

import pytest

from curation.models.place import SuggestionStatus
from curation.services.curation_service import CurationService
from curation.services.field_path import InvalidPathError
from curation.services.place_persistence import FileSystemBackend, PlacePersistence, PlaceNotFoundError

from test_place_persistence import FailingBackend


class SlowBackend(FileSystemBackend):
    """File backend that yields to the loop before writing"""

    async def write(self, place_id, document):
        await asyncio.sleep(0.01)
        await super().write(place_id, document)


class TestPlaces:

    async def test_create_place_persists_stub(self, service):
        record = await service.create_place("New cafe", creator_id="u1", categories=["cafe"])
        outcomes = await service.drain()

        assert [o.place_id for o in outcomes] == [record.place_id]
        loaded = await service.load_place(record.place_id)
        assert loaded.status == "stub"
        assert loaded.categories == ["cafe"]

    async def test_load_waits_for_in_flight_save(self, tmp_path, mutator):
        service = CurationService(PlacePersistence(SlowBackend(str(tmp_path))), mutator)

        record = await service.create_place("Slow place")
        assert service.pending_saves == 1

        loaded = await service.load_place(record.place_id)
        assert loaded.place_name == "Slow place"
        assert service.pending_saves == 0

    async def test_delete_place(self, service):
        record = await service.create_place("Temp")
        outcome = await service.delete_place(record.place_id)

        assert outcome.succeeded
        with pytest.raises(PlaceNotFoundError):
            await service.load_place(record.place_id)


class TestSuggestions:

    async def test_add_is_visible_immediately_and_saved(self, service, place):
        suggestion = await service.add_suggestion(place, "tags", "lee", "a, b")

        assert place.suggestions["tags"] == [suggestion]
        await service.drain()

        loaded = await service.load_place(place.place_id)
        assert loaded.suggestions["tags"][0].id == suggestion.id

    async def test_invalid_path_raises_and_saves_nothing(self, service, place):
        with pytest.raises(InvalidPathError):
            await service.add_suggestion(place, "", "lee", "x")
        assert service.pending_saves == 0

    async def test_resolve_updates_copy_and_store(self, service, place):
        suggestion = await service.add_suggestion(place, "tags", "lee", "a, b")
        await service.resolve_suggestion(place, "tags", suggestion.id, "accepted", "admin")

        assert place.tags == ["a", "b"]
        await service.drain()

        loaded = await service.load_place(place.place_id)
        assert loaded.tags == ["a", "b"]
        assert len(loaded.edit_history) == 1
        assert loaded.suggestions["tags"][0].status == SuggestionStatus.ACCEPTED

    async def test_snapshot_is_saved_not_live_record(self, tmp_path, mutator, place):
        service = CurationService(PlacePersistence(SlowBackend(str(tmp_path))), mutator)

        await service.add_suggestion(place, "tags", "lee", "first")
        place.place_name = "Changed after hand-off"
        await service.drain()

        loaded = await service.load_place(place.place_id)
        assert loaded.place_name == "Seongsan Sunrise Peak"

    async def test_noop_resolution_does_not_save(self, service, place):
        await service.resolve_suggestion(place, "tags", "sugg_missing", "accepted", "admin")
        assert service.pending_saves == 0

        suggestion = await service.add_suggestion(place, "tags", "lee", "x")
        await service.resolve_suggestion(place, "tags", suggestion.id, "rejected", "admin")
        await service.drain()

        await service.resolve_suggestion(place, "tags", suggestion.id, "accepted", "admin")
        assert service.pending_saves == 0


class TestSaveFailures:

    async def test_failed_save_keeps_in_memory_change(self, mutator, place):
        service = CurationService(PlacePersistence(FailingBackend()), mutator)

        suggestion = await service.add_suggestion(place, "tags", "lee", "a")
        await service.resolve_suggestion(place, "tags", suggestion.id, "accepted", "admin")
        outcomes = await service.drain()

        assert len(outcomes) == 2
        assert not any(o.succeeded for o in outcomes)
        assert place.tags == ["a"]
        assert suggestion.status == SuggestionStatus.ACCEPTED

    async def test_drain_clears_outcomes(self, service, place):
        await service.add_suggestion(place, "tags", "lee", "a")
        assert len(await service.drain()) == 1
        assert await service.drain() == []
