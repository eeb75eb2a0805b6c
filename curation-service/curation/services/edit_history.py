"""
Edit history: the append-only audit log of accepted suggestions.

Entries are stored oldest first; views for display are derived on read.
"""

from typing import Any, List, Optional

from curation.models.place import EditLogEntry, FirestoreTimestamp, PlaceRecord


def append_entry(
    record: PlaceRecord,
    field_path: str,
    previous_value: Any,
    new_value: Any,
    accepted_by: str,
    accepted_at: FirestoreTimestamp,
    suggestion_id: str,
) -> EditLogEntry:
    entry = EditLogEntry(
        field_path=field_path,
        previous_value=previous_value,
        new_value=new_value,
        accepted_by=accepted_by,
        accepted_at=accepted_at,
        suggestion_id=suggestion_id,
    )
    record.edit_history.append(entry)
    return entry


def latest_first(record: PlaceRecord) -> List[EditLogEntry]:
    return list(reversed(record.edit_history))


def entries_for_path(record: PlaceRecord, field_path: str) -> List[EditLogEntry]:
    return [e for e in record.edit_history if e.field_path == field_path]


def entry_for_suggestion(record: PlaceRecord, suggestion_id: str) -> Optional[EditLogEntry]:
    for entry in record.edit_history:
        if entry.suggestion_id == suggestion_id:
            return entry
    return None


def describe(entry: EditLogEntry, empty_label: str = "(none)") -> str:
    """One display line, e.g. ``editor updated tags: a -> a, b``."""

    def _render(value: Any) -> str:
        if value is None or value == "":
            return empty_label
        if isinstance(value, list):
            return ", ".join(str(v) for v in value) or empty_label
        return str(value)

    return (
        f"{entry.accepted_by} updated {entry.field_path}: "
        f"{_render(entry.previous_value)} -> {_render(entry.new_value)}"
    )
