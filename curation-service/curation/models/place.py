"""
Place Data Model
================

A Place is a semi-structured travel-location document. A handful of fields
are known and typed; everything else is carried through untouched
(``extra="allow"``) so any field of a stored document can be addressed by a
field path.

Two collections support collaborative editing:
- ``suggestions``: field path -> ordered list of Suggestion
- ``edit_history``: ordered, append-only list of EditLogEntry

Wire format follows the document database: Place fields are snake_case,
Suggestion / EditLogEntry / timestamp fields are camelCase.
"""

from typing import Dict, List, Optional, Any
from datetime import datetime, timezone
from enum import Enum
import uuid

from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from curation.utils.datetime_utils import utc_now, ensure_utc


# ============================================================================
# ENUMS & CONSTANTS
# ============================================================================

class SuggestionStatus(str, Enum):
    """Lifecycle states of a suggestion"""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


NANOS_PER_SECOND = 1_000_000_000


class WireModel(BaseModel):
    """Base for nested documents stored with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# TIMESTAMP
# ============================================================================

class FirestoreTimestamp(WireModel):
    """
    ``{seconds, nanoseconds}`` pair, the encoding document databases use for
    timestamps.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    seconds: int = Field(description="Whole seconds since the Unix epoch")
    nanoseconds: int = Field(default=0, ge=0, lt=NANOS_PER_SECOND)

    @classmethod
    def from_datetime(cls, dt: datetime) -> "FirestoreTimestamp":
        dt = ensure_utc(dt)
        delta = dt - datetime(1970, 1, 1, tzinfo=timezone.utc)
        seconds = delta.days * 86400 + delta.seconds
        return cls(seconds=seconds, nanoseconds=delta.microseconds * 1000)

    @classmethod
    def now(cls) -> "FirestoreTimestamp":
        return cls.from_datetime(utc_now())

    def to_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.seconds, tz=timezone.utc).replace(
            microsecond=self.nanoseconds // 1000
        )

    def __str__(self) -> str:
        return self.to_datetime().isoformat()


def new_suggestion_id() -> str:
    return f"sugg_{uuid.uuid4().hex[:16]}"


# ============================================================================
# SUGGESTION & EDIT LOG MODELS
# ============================================================================

class Suggestion(WireModel):
    """
    A proposed edit to a single field path.

    Created ``pending``; moves exactly once to ``accepted`` or ``rejected``.
    """
    id: str = Field(default_factory=new_suggestion_id)
    author: str = Field(description="Who proposed the edit")
    content: str = Field(description="Raw proposed content, typed on acceptance")
    created_at: FirestoreTimestamp = Field(default_factory=FirestoreTimestamp.now)
    status: SuggestionStatus = SuggestionStatus.PENDING
    resolved_by: Optional[str] = None
    resolved_at: Optional[FirestoreTimestamp] = None

    @property
    def is_pending(self) -> bool:
        return self.status == SuggestionStatus.PENDING


class EditLogEntry(WireModel):
    """
    Immutable record of an accepted suggestion.
    Every accepted suggestion MUST create exactly one of these.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    field_path: str = Field(description="Field path that changed (e.g. 'attributes.withKids')")
    previous_value: Optional[Any] = Field(default=None, description="Value before acceptance (null if absent)")
    new_value: Optional[Any] = Field(default=None, description="Value merged into the record")
    accepted_by: str = Field(description="Actor who accepted the suggestion")
    accepted_at: FirestoreTimestamp = Field(default_factory=FirestoreTimestamp.now)
    suggestion_id: str = Field(description="Suggestion that produced this change")

    def __str__(self) -> str:
        return f"{self.accepted_by} updated {self.field_path}: {self.previous_value!r} → {self.new_value!r}"


# ============================================================================
# PLACE (ROOT MODEL)
# ============================================================================

class PlaceRecord(BaseModel):
    """
    The working copy of a Place document.

    Rules:
    1. ``suggestions`` and ``edit_history`` are always present (never None)
    2. Keys of ``suggestions`` are never removed
    3. ``edit_history`` is append-only
    4. Unknown document fields are kept and remain path-addressable
    """
    model_config = ConfigDict(extra="allow")

    place_id: str = Field(default_factory=lambda: f"P_{uuid.uuid4().hex[:12].upper()}")
    # Editable content: any accepted value must survive a reload
    place_name: Any
    creator_id: Optional[Any] = None
    status: Any = "draft"  # draft | published | rejected | stub
    categories: Any = Field(default_factory=list)
    address: Optional[Any] = None
    region: Optional[Any] = None
    location: Optional[Any] = None
    images: Any = Field(default_factory=list)
    attributes: Optional[Any] = None
    average_duration_minutes: Optional[Any] = None
    category_specific_info: Optional[Any] = None
    expert_tip_raw: Optional[Any] = None
    expert_tip_final: Optional[Any] = None
    comments: Optional[Any] = None
    linked_spots: Any = Field(default_factory=list)
    public_info: Optional[Any] = None
    tags: Optional[Any] = None
    interest_tags: Optional[Any] = None
    import_url: Optional[Any] = None

    # Bookkeeping, never addressable by a suggestion
    created_at: Optional[FirestoreTimestamp] = None
    updated_at: Optional[FirestoreTimestamp] = None

    suggestions: Dict[str, List[Suggestion]] = Field(default_factory=dict)
    edit_history: List[EditLogEntry] = Field(default_factory=list)

    @field_validator('suggestions', mode='before')
    @classmethod
    def default_suggestions(cls, v: Any) -> Any:
        """Stored documents may omit or null the collection"""
        if v is None:
            return {}
        return {path: (entries or []) for path, entries in v.items()} if isinstance(v, dict) else v

    @field_validator('edit_history', mode='before')
    @classmethod
    def default_edit_history(cls, v: Any) -> Any:
        return [] if v is None else v

    def touch(self, at: Optional[FirestoreTimestamp] = None) -> None:
        """Update ``updated_at`` (defaults to now)."""
        self.updated_at = at or FirestoreTimestamp.now()

    def to_document(self) -> Dict[str, Any]:
        """Serialize for storage (camelCase nested keys, JSON-safe values)"""
        return self.model_dump(mode='json', by_alias=True, warnings=False)

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "PlaceRecord":
        """Deserialize a stored document with validation"""
        return cls.model_validate(data)

    @classmethod
    def create_stub(
        cls,
        place_name: str,
        creator_id: Optional[str] = None,
        categories: Optional[List[str]] = None,
        place_id: Optional[str] = None,
    ) -> "PlaceRecord":
        """
        Create a minimal ``stub`` Place, to be filled in by later edits.
        """
        now = FirestoreTimestamp.now()
        data: Dict[str, Any] = dict(
            place_name=place_name,
            creator_id=creator_id,
            status="stub",
            categories=categories or [],
            created_at=now,
            updated_at=now,
            comments=[],
        )
        if place_id:
            data["place_id"] = place_id
        return cls(**data)

    def __str__(self) -> str:
        pending = sum(
            1 for entries in self.suggestions.values() for s in entries if s.is_pending
        )
        return (
            f"PlaceRecord(id={self.place_id}, "
            f"name={self.place_name}, "
            f"status={self.status}, "
            f"pending_suggestions={pending}, "
            f"edits={len(self.edit_history)})"
        )
