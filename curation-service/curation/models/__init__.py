"""
Models package - Place documents and their collaboration records.
"""

from .place import (
    SuggestionStatus,
    FirestoreTimestamp,
    Suggestion,
    EditLogEntry,
    PlaceRecord,
    new_suggestion_id,
)

__all__ = [
    'SuggestionStatus',
    'FirestoreTimestamp',
    'Suggestion',
    'EditLogEntry',
    'PlaceRecord',
    'new_suggestion_id',
]
