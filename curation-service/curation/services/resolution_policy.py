"""
Resolution Policy
=================

Turns the raw text of an accepted suggestion into the value merged into the
record. Lookup is by EXACT field path; a path with no entry is stored as-is.

Transforms:
- IDENTITY     -> content unchanged
- SPLIT_LIST   -> "a, b ,, c" -> ["a", "b", "c"]
- APPEND_NOTE  -> "<existing>\\n\\n[<date>] <content>" (never overwrites)

APPEND_NOTE is not idempotent: applying the same content twice appends it
twice. The record mutator only ever applies a suggestion once.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from curation.utils.datetime_utils import date_stamp, utc_now


class TransformKind(str, Enum):
    """Closed set of merge transforms"""
    IDENTITY = "identity"
    SPLIT_LIST = "split_list"
    APPEND_NOTE = "append_note"


# Paths not listed here are stored as-is
DEFAULT_POLICY_TABLE: Dict[str, TransformKind] = {
    "tags": TransformKind.SPLIT_LIST,
    "expert_tip_final": TransformKind.APPEND_NOTE,
}


def split_list(raw_content: Any) -> List[Any]:
    """Comma list -> trimmed, non-empty pieces; sequences pass through."""
    if isinstance(raw_content, str):
        return [piece.strip() for piece in raw_content.split(",") if piece.strip()]
    if isinstance(raw_content, (list, tuple)):
        return list(raw_content)
    return []


def append_note(
    raw_content: Any,
    existing: Any,
    now: Optional[datetime] = None,
    date_format: str = "%Y-%m-%d",
) -> str:
    """Append a dated block to existing note text."""
    appendix = f"[{date_stamp(now, date_format)}] {raw_content}"
    if isinstance(existing, str) and existing:
        return f"{existing}\n\n{appendix}"
    return appendix


class ResolutionPolicy:
    """
    Maps field paths to transforms.

    Extending the table means one entry per concrete path: there is no
    pattern matching (``comments[0].content`` and ``comments[1].content``
    are distinct entries).
    """

    def __init__(
        self,
        table: Optional[Dict[str, TransformKind]] = None,
        date_format: str = "%Y-%m-%d",
    ):
        self.table: Dict[str, TransformKind] = dict(DEFAULT_POLICY_TABLE if table is None else table)
        self.date_format = date_format

    @classmethod
    def from_settings(cls, settings) -> "ResolutionPolicy":
        """Build the table from configured path lists"""
        table: Dict[str, TransformKind] = {}
        for path in settings.list_field_paths:
            table[path] = TransformKind.SPLIT_LIST
        for path in settings.append_note_field_paths:
            table[path] = TransformKind.APPEND_NOTE
        return cls(table=table, date_format=settings.note_date_format)

    def register(self, path: str, kind: TransformKind) -> None:
        previous = self.table.get(path)
        self.table[path] = TransformKind(kind)
        if previous is not None and previous != kind:
            logger.warning(
                "Resolution policy entry replaced",
                extra={"field_path": path, "previous": previous.value, "kind": TransformKind(kind).value},
            )

    def register_many(self, paths: Iterable[str], kind: TransformKind) -> None:
        for path in paths:
            self.register(path, kind)

    def kind_for(self, path: str) -> TransformKind:
        return self.table.get(path, TransformKind.IDENTITY)

    def apply(
        self,
        path: str,
        raw_content: Any,
        existing: Any = None,
        now: Optional[datetime] = None,
    ) -> Any:
        """
        Produce the value to merge at ``path``.

        Args:
            path: Exact field path the suggestion targets
            raw_content: Suggestion content
            existing: Current value at ``path`` (used by APPEND_NOTE)
            now: Clock reading for date stamps (defaults to UTC now)
        """
        kind = self.kind_for(path)

        if kind == TransformKind.SPLIT_LIST:
            return split_list(raw_content)
        if kind == TransformKind.APPEND_NOTE:
            return append_note(raw_content, existing, now or utc_now(), self.date_format)
        return raw_content
