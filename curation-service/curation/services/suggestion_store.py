"""
Suggestion Store
================

Per-record suggestion bookkeeping. Suggestions live inside the record they
annotate (``record.suggestions[path]``); lists only grow and a suggestion
only ever changes through its status.
"""

from typing import Dict, List, Optional

from loguru import logger

from curation.models.place import (
    FirestoreTimestamp,
    PlaceRecord,
    Suggestion,
    SuggestionStatus,
)
from curation.services import field_path
from curation.services.field_path import FieldKey, InvalidPathError


# Record bookkeeping owned by the engine itself
RESERVED_ROOT_FIELDS = frozenset({
    "place_id",
    "suggestions",
    "edit_history",
    "created_at",
    "updated_at",
})


# ============================================================================
# EXCEPTIONS
# ============================================================================

class SuggestionError(Exception):
    """Base exception for suggestion errors"""
    pass


class SuggestionNotFoundError(SuggestionError):
    """Raised (strict mode only) when a suggestion id is absent from its path"""

    def __init__(self, path: str, suggestion_id: str):
        self.path = path
        self.suggestion_id = suggestion_id
        super().__init__(f"Suggestion '{suggestion_id}' not found at '{path}'")


class SuggestionAlreadyResolvedError(SuggestionError):
    """Raised (strict mode only) when resolving a suggestion that is no longer pending"""

    def __init__(self, suggestion: Suggestion):
        self.suggestion = suggestion
        super().__init__(
            f"Suggestion '{suggestion.id}' is already {suggestion.status.value}"
        )


# ============================================================================
# OPERATIONS
# ============================================================================

def check_editable_path(path: str) -> None:
    """
    Raises:
        InvalidPathError: malformed path, or one rooted at engine bookkeeping
    """
    root = field_path.parse(path)[0]
    if isinstance(root, FieldKey) and root.name in RESERVED_ROOT_FIELDS:
        raise InvalidPathError(f"Field path targets a reserved field: {path!r}")


def add_suggestion(
    record: PlaceRecord,
    path: str,
    author: str,
    content: str,
    now: Optional[FirestoreTimestamp] = None,
) -> Suggestion:
    """
    Append a new pending suggestion for ``path``.

    Multiple pending suggestions may coexist on the same path.

    Raises:
        InvalidPathError: ``path`` is empty, malformed or reserved
    """
    check_editable_path(path)

    suggestion = Suggestion(
        author=author,
        content=content,
        created_at=now or FirestoreTimestamp.now(),
        status=SuggestionStatus.PENDING,
    )
    record.suggestions.setdefault(path, []).append(suggestion)

    logger.debug(
        "Suggestion added",
        extra={
            "place_id": record.place_id,
            "field_path": path,
            "suggestion_id": suggestion.id,
            "author": author,
        },
    )
    return suggestion


def list_suggestions(record: PlaceRecord, path: str) -> List[Suggestion]:
    """Suggestions for ``path`` in insertion order (empty list if none)."""
    return list(record.suggestions.get(path, []))


def has_pending(record: PlaceRecord, path: str) -> bool:
    return any(s.is_pending for s in record.suggestions.get(path, []))


def find_suggestion(record: PlaceRecord, path: str, suggestion_id: str) -> Optional[Suggestion]:
    for suggestion in record.suggestions.get(path, []):
        if suggestion.id == suggestion_id:
            return suggestion
    return None


def pending_paths(record: PlaceRecord) -> List[str]:
    """Paths holding at least one pending suggestion, in first-touched order."""
    return [path for path in record.suggestions if has_pending(record, path)]


def count_by_status(record: PlaceRecord) -> Dict[str, int]:
    counts = {status.value: 0 for status in SuggestionStatus}
    for entries in record.suggestions.values():
        for suggestion in entries:
            counts[suggestion.status.value] += 1
    return counts
