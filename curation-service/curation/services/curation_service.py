"""
Curation service: the async facade used by the HTTP layer.

Each mutation updates the caller's working copy immediately (optimistic)
and hands a snapshot to persistence without waiting for the write. A failed
save is logged; it never undoes the in-memory change.
"""

import asyncio
from typing import List, Optional, Set, Union

from loguru import logger

from curation.models.place import PlaceRecord, Suggestion, SuggestionStatus
from curation.services import suggestion_store
from curation.services.place_persistence import PlacePersistence, SaveOutcome
from curation.services.record_mutator import RecordMutator


class CurationService:

    def __init__(self, persistence: PlacePersistence, mutator: Optional[RecordMutator] = None):
        self.persistence = persistence
        self.mutator = mutator or RecordMutator()
        self._pending_saves: Set[asyncio.Task] = set()
        self._outcomes: List[SaveOutcome] = []

    # ========================================================================
    # PLACES
    # ========================================================================

    async def create_place(
        self,
        place_name: str,
        creator_id: Optional[str] = None,
        categories: Optional[List[str]] = None,
    ) -> PlaceRecord:
        record = PlaceRecord.create_stub(place_name, creator_id=creator_id, categories=categories)
        logger.info("Place stub created", extra={"place_id": record.place_id})
        self.schedule_save(record)
        return record

    async def load_place(self, place_id: str) -> PlaceRecord:
        # Read-your-writes within this process
        await self.wait_for_saves()
        return await self.persistence.load(place_id)

    async def delete_place(self, place_id: str) -> SaveOutcome:
        # Let in-flight saves land first so they cannot resurrect the place
        await self.wait_for_saves()
        return await self.persistence.delete(place_id)

    # ========================================================================
    # SUGGESTIONS
    # ========================================================================

    async def add_suggestion(
        self,
        record: PlaceRecord,
        path: str,
        author: str,
        content: str,
    ) -> Suggestion:
        suggestion = suggestion_store.add_suggestion(record, path, author, content)
        self.schedule_save(record)
        return suggestion

    async def resolve_suggestion(
        self,
        record: PlaceRecord,
        path: str,
        suggestion_id: str,
        resolution: Union[SuggestionStatus, str],
        actor: str,
    ) -> PlaceRecord:
        suggestion = suggestion_store.find_suggestion(record, path, suggestion_id)
        status_before = suggestion.status if suggestion else None

        self.mutator.resolve(record, path, suggestion_id, resolution, actor)

        if suggestion is not None and suggestion.status != status_before:
            self.schedule_save(record)
        return record

    # ========================================================================
    # PERSISTENCE HAND-OFF
    # ========================================================================

    def schedule_save(self, record: PlaceRecord) -> asyncio.Task:
        """Start saving a snapshot of ``record`` without awaiting it."""
        snapshot = record.model_copy(deep=True)
        task = asyncio.get_running_loop().create_task(self.persistence.save(snapshot))
        self._pending_saves.add(task)
        task.add_done_callback(self._on_save_done)
        return task

    def _on_save_done(self, task: asyncio.Task) -> None:
        self._pending_saves.discard(task)
        if task.cancelled():
            logger.warning("Place save cancelled")
            return

        error = task.exception()
        if error is not None:
            logger.error("Place save crashed", extra={"error": repr(error)})
            return

        outcome = task.result()
        self._outcomes.append(outcome)
        if not outcome.succeeded:
            logger.warning(
                "Place save failed, in-memory change kept",
                extra={"place_id": outcome.place_id, "error": outcome.error},
            )

    @property
    def pending_saves(self) -> int:
        return len(self._pending_saves)

    async def wait_for_saves(self) -> None:
        while self._pending_saves:
            await asyncio.gather(*list(self._pending_saves), return_exceptions=True)

    async def drain(self) -> List[SaveOutcome]:
        """Wait for all in-flight saves; returns the outcomes collected since the last drain."""
        await self.wait_for_saves()
        outcomes, self._outcomes = self._outcomes, []
        return outcomes
