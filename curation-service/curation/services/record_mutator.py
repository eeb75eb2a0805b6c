"""
Record Mutator - Suggestion Resolution Engine
=============================================

All suggestion resolutions go through this module.

Responsibilities:
1. Locate the suggestion being resolved
2. Transition its status (accepted / rejected), exactly once
3. On acceptance: snapshot the previous value, apply the resolution policy,
   write the new value at the field path, append an edit log entry and
   bump ``updated_at``

Design Principles:
- Pure in-memory mutation, no I/O (the caller persists)
- A missing suggestion is not fatal: logged, record returned unchanged
- A suggestion is never resolved twice
"""

import copy
from datetime import datetime
from typing import Callable, Optional, Union

from loguru import logger

from curation.models.place import (
    FirestoreTimestamp,
    PlaceRecord,
    Suggestion,
    SuggestionStatus,
)
from curation.services import edit_history, field_path
from curation.services.resolution_policy import ResolutionPolicy
from curation.services.suggestion_store import (
    SuggestionAlreadyResolvedError,
    SuggestionNotFoundError,
    check_editable_path,
    find_suggestion,
)
from curation.utils.datetime_utils import utc_now


class RecordMutator:
    """
    Applies suggestion resolutions to a Place working copy.

    In strict mode a missing or already-resolved suggestion raises instead
    of being logged and skipped.
    """

    def __init__(
        self,
        policy: Optional[ResolutionPolicy] = None,
        strict: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.policy = policy or ResolutionPolicy()
        self.strict = strict
        self.clock = clock

    def resolve(
        self,
        record: PlaceRecord,
        path: str,
        suggestion_id: str,
        resolution: Union[SuggestionStatus, str],
        actor: str,
    ) -> PlaceRecord:
        """
        Accept or reject one suggestion.

        Args:
            record: Place working copy (mutated in place)
            path: Field path the suggestion was filed under
            suggestion_id: Suggestion to resolve
            resolution: ``accepted`` or ``rejected``
            actor: Who is resolving

        Returns:
            The same record, updated

        Raises:
            ValueError: ``resolution`` is not accepted/rejected
            SuggestionNotFoundError: strict mode, unknown suggestion id
            SuggestionAlreadyResolvedError: strict mode, suggestion not pending
            InvalidPathError: accepting at a reserved path (e.g. ``edit_history``)
            PathConflictError: accepted content cannot be written at ``path``
        """
        resolution = self._validate_resolution(resolution)

        suggestion = find_suggestion(record, path, suggestion_id)
        if suggestion is None:
            logger.warning(
                "Suggestion not found, resolve skipped",
                extra={"place_id": record.place_id, "field_path": path, "suggestion_id": suggestion_id},
            )
            if self.strict:
                raise SuggestionNotFoundError(path, suggestion_id)
            return record

        if not suggestion.is_pending:
            logger.warning(
                "Suggestion already resolved, resolve skipped",
                extra={
                    "place_id": record.place_id,
                    "field_path": path,
                    "suggestion_id": suggestion_id,
                    "status": suggestion.status.value,
                },
            )
            if self.strict:
                raise SuggestionAlreadyResolvedError(suggestion)
            return record

        now = self.clock()
        stamp = FirestoreTimestamp.from_datetime(now)

        if resolution == SuggestionStatus.ACCEPTED:
            self._apply_acceptance(record, path, suggestion, actor, now, stamp)

        suggestion.status = resolution
        suggestion.resolved_by = actor
        suggestion.resolved_at = stamp

        logger.info(
            "Suggestion resolved",
            extra={
                "place_id": record.place_id,
                "field_path": path,
                "suggestion_id": suggestion_id,
                "resolution": resolution.value,
                "actor": actor,
                "history_length": len(record.edit_history),
            },
        )
        return record

    def accept(self, record: PlaceRecord, path: str, suggestion_id: str, actor: str) -> PlaceRecord:
        return self.resolve(record, path, suggestion_id, SuggestionStatus.ACCEPTED, actor)

    def reject(self, record: PlaceRecord, path: str, suggestion_id: str, actor: str) -> PlaceRecord:
        return self.resolve(record, path, suggestion_id, SuggestionStatus.REJECTED, actor)

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _validate_resolution(self, resolution: Union[SuggestionStatus, str]) -> SuggestionStatus:
        status = SuggestionStatus(resolution)
        if status == SuggestionStatus.PENDING:
            raise ValueError("A suggestion can only be resolved as 'accepted' or 'rejected'")
        return status

    def _apply_acceptance(
        self,
        record: PlaceRecord,
        path: str,
        suggestion: Suggestion,
        actor: str,
        now: datetime,
        stamp: FirestoreTimestamp,
    ) -> None:
        """
        Merge accepted content into the record.

        The write happens before the status flip so a PathConflictError
        leaves the suggestion pending.
        """
        check_editable_path(path)

        snapshot = record.model_copy(deep=True)
        previous_value = field_path.get(snapshot, path)

        new_value = self.policy.apply(path, suggestion.content, existing=previous_value, now=now)
        field_path.set(record, path, new_value)

        edit_history.append_entry(
            record,
            field_path=path,
            previous_value=previous_value,
            new_value=copy.deepcopy(new_value),
            accepted_by=actor,
            accepted_at=stamp,
            suggestion_id=suggestion.id,
        )
        record.touch(stamp)

        logger.debug(
            "Accepted content merged",
            extra={
                "place_id": record.place_id,
                "field_path": path,
                "transform": self.policy.kind_for(path).value,
            },
        )
