"""
REST API for places, field suggestions and edit history.

Every mutating route updates the loaded working copy, answers with the
updated state and leaves persistence running in the background.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Literal, Optional

from curation.models.place import FirestoreTimestamp, Suggestion
from curation.services import edit_history, field_path, suggestion_store
from curation.services.curation_service import CurationService
from curation.utils.logging import get_logger, log_context

router = APIRouter()
logger = get_logger(__name__)


def get_curation_service(request: Request) -> CurationService:
    return request.app.state.curation_service


# ============================================================================
# REQUEST / RESPONSE MODELS
# ============================================================================

class CreatePlaceRequest(BaseModel):
    """New place stub"""
    place_name: str = Field(..., min_length=1, max_length=200)
    creator_id: Optional[str] = None
    categories: List[str] = Field(default_factory=list)

    @field_validator('place_name')
    @classmethod
    def validate_place_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("place_name cannot be empty or whitespace")
        return v.strip()


class AddSuggestionRequest(BaseModel):
    """Proposed edit for one field"""
    field_path: str = Field(..., min_length=1, description="e.g. 'attributes.withKids' or 'comments[0].content'")
    author: str = Field(..., min_length=1, max_length=255)
    content: str

    class Config:
        json_schema_extra = {
            "example": {
                "field_path": "tags",
                "author": "editor_kim",
                "content": "ocean view, sunset, family"
            }
        }


class ResolveSuggestionRequest(BaseModel):
    """Accept or reject a suggestion"""
    field_path: str = Field(..., min_length=1)
    resolution: Literal["accepted", "rejected"]
    actor: str = Field(..., min_length=1, max_length=255)


class SuggestionListResponse(BaseModel):
    place_id: str
    field_path: str
    has_pending: bool
    suggestions: List[Suggestion]


class ResolveSuggestionResponse(BaseModel):
    place_id: str
    field_path: str
    suggestion: Optional[Suggestion] = None
    value: Optional[Any] = None
    history_length: int


class PendingSummaryResponse(BaseModel):
    place_id: str
    pending_paths: List[str]
    counts: Dict[str, int]


class HistoryEntryResponse(BaseModel):
    field_path: str
    previous_value: Optional[Any] = None
    new_value: Optional[Any] = None
    accepted_by: str
    accepted_at: FirestoreTimestamp
    suggestion_id: str
    description: str


class DeletePlaceResponse(BaseModel):
    place_id: str
    deleted: bool
    backup_deleted: Optional[bool] = None


# ============================================================================
# PLACES
# ============================================================================

@router.post(
    "/places",
    status_code=status.HTTP_201_CREATED,
    summary="Create a place stub",
)
async def create_place(
    body: CreatePlaceRequest,
    service: CurationService = Depends(get_curation_service),
) -> Dict[str, Any]:
    record = await service.create_place(body.place_name, body.creator_id, body.categories)
    logger.info("place.created", extra={"place_id": record.place_id})
    return record.to_document()


@router.get("/places/{place_id}", summary="Get a place document")
async def get_place(
    place_id: str,
    service: CurationService = Depends(get_curation_service),
) -> Dict[str, Any]:
    record = await service.load_place(place_id)
    return record.to_document()


@router.delete("/places/{place_id}", response_model=DeletePlaceResponse)
async def delete_place(
    place_id: str,
    service: CurationService = Depends(get_curation_service),
) -> DeletePlaceResponse:
    with log_context(place_id=place_id):
        outcome = await service.delete_place(place_id)
        if not outcome.succeeded:
            logger.warning("place.delete.failed", extra={"error": outcome.error})
        return DeletePlaceResponse(
            place_id=place_id,
            deleted=outcome.succeeded,
            backup_deleted=outcome.backup_ok,
        )


# ============================================================================
# SUGGESTIONS
# ============================================================================

@router.get("/places/{place_id}/suggestions", response_model=SuggestionListResponse)
async def list_suggestions(
    place_id: str,
    path: str = Query(..., min_length=1, description="Field path"),
    service: CurationService = Depends(get_curation_service),
) -> SuggestionListResponse:
    record = await service.load_place(place_id)
    return SuggestionListResponse(
        place_id=place_id,
        field_path=path,
        has_pending=suggestion_store.has_pending(record, path),
        suggestions=suggestion_store.list_suggestions(record, path),
    )


@router.post(
    "/places/{place_id}/suggestions",
    status_code=status.HTTP_201_CREATED,
    response_model=Suggestion,
    response_model_by_alias=True,
)
async def add_suggestion(
    place_id: str,
    body: AddSuggestionRequest,
    service: CurationService = Depends(get_curation_service),
) -> Suggestion:
    with log_context(place_id=place_id, actor=body.author):
        record = await service.load_place(place_id)
        suggestion = await service.add_suggestion(record, body.field_path, body.author, body.content)

        logger.info(
            "suggestion.added",
            extra={"field_path": body.field_path, "suggestion_id": suggestion.id},
        )
        return suggestion


@router.post(
    "/places/{place_id}/suggestions/{suggestion_id}/resolve",
    response_model=ResolveSuggestionResponse,
)
async def resolve_suggestion(
    place_id: str,
    suggestion_id: str,
    body: ResolveSuggestionRequest,
    service: CurationService = Depends(get_curation_service),
) -> ResolveSuggestionResponse:
    with log_context(place_id=place_id, actor=body.actor):
        record = await service.load_place(place_id)
        await service.resolve_suggestion(
            record, body.field_path, suggestion_id, body.resolution, body.actor
        )

        suggestion = suggestion_store.find_suggestion(record, body.field_path, suggestion_id)
        if suggestion is None:
            logger.warning(
                "suggestion.resolve.not_found",
                extra={"field_path": body.field_path, "suggestion_id": suggestion_id},
            )
        else:
            logger.info(
                "suggestion.resolved",
                extra={
                    "field_path": body.field_path,
                    "suggestion_id": suggestion_id,
                    "status": suggestion.status.value,
                },
            )

        document = record.to_document()
        return ResolveSuggestionResponse(
            place_id=place_id,
            field_path=body.field_path,
            suggestion=suggestion,
            value=field_path.get(document, body.field_path),
            history_length=len(record.edit_history),
        )


@router.get("/places/{place_id}/pending", response_model=PendingSummaryResponse)
async def pending_summary(
    place_id: str,
    service: CurationService = Depends(get_curation_service),
) -> PendingSummaryResponse:
    record = await service.load_place(place_id)
    return PendingSummaryResponse(
        place_id=place_id,
        pending_paths=suggestion_store.pending_paths(record),
        counts=suggestion_store.count_by_status(record),
    )


# ============================================================================
# EDIT HISTORY
# ============================================================================

@router.get("/places/{place_id}/history", response_model=List[HistoryEntryResponse])
async def get_history(
    place_id: str,
    order: Literal["latest_first", "oldest_first"] = "latest_first",
    path: Optional[str] = None,
    service: CurationService = Depends(get_curation_service),
) -> List[HistoryEntryResponse]:
    record = await service.load_place(place_id)

    entries = edit_history.latest_first(record) if order == "latest_first" else list(record.edit_history)
    if path:
        entries = [e for e in entries if e.field_path == path]

    return [
        HistoryEntryResponse(
            field_path=e.field_path,
            previous_value=e.previous_value,
            new_value=e.new_value,
            accepted_by=e.accepted_by,
            accepted_at=e.accepted_at,
            suggestion_id=e.suggestion_id,
            description=edit_history.describe(e),
        )
        for e in entries
    ]
