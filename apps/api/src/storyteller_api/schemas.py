"""API request/response schemas."""

from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from storyteller_core_schemas import RunPhase, SceneStatus, StoryboardSnapshot
from storyteller_services import Session

T = TypeVar("T")


# Pagination
class PaginationMeta(BaseModel):
    """Pagination metadata."""

    total: int
    limit: int
    offset: int
    has_more: bool


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response wrapper."""

    data: list[T]
    pagination: PaginationMeta


# Error responses
class ErrorDetail(BaseModel):
    """Error detail."""

    code: str
    message: str
    field: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error response."""

    error: ErrorDetail


# Storyboard requests/responses
class CreateStoryboardRequest(BaseModel):
    """Start a storyboard run."""

    concept: str = Field(..., max_length=500, examples=["How rockets work"])


class SceneResponse(BaseModel):
    """Scene response."""

    number: int
    narration: str
    image_url: Optional[str] = None
    image_loading: bool
    status: SceneStatus


class StoryboardResponse(BaseModel):
    """Storyboard snapshot response."""

    session_id: str
    concept: Optional[str] = None
    phase: RunPhase
    busy: bool
    error: Optional[str] = None
    revision: int
    cursor: int
    counter: str
    current_scene: Optional[SceneResponse] = None
    scenes: list[SceneResponse] = Field(default_factory=list)


class SessionResponse(BaseModel):
    """Session summary response."""

    id: str
    concept: Optional[str] = None
    phase: RunPhase
    busy: bool
    scene_count: int
    created_at: datetime
    updated_at: datetime


# Converters
def snapshot_to_response(
    session: Session,
    snapshot: Optional[StoryboardSnapshot] = None,
) -> StoryboardResponse:
    """Convert a session's storyboard snapshot to a response."""
    snapshot = snapshot or session.orchestrator.snapshot()
    scenes = [
        SceneResponse(
            number=index + 1,
            narration=scene.narration,
            image_url=scene.image_url,
            image_loading=scene.image_loading,
            status=scene.status,
        )
        for index, scene in enumerate(snapshot.scenes)
    ]
    return StoryboardResponse(
        session_id=session.id,
        concept=session.concept,
        phase=snapshot.phase,
        busy=snapshot.busy,
        error=snapshot.error,
        revision=snapshot.revision,
        cursor=snapshot.cursor,
        counter=snapshot.counter,
        current_scene=scenes[snapshot.cursor] if scenes else None,
        scenes=scenes,
    )


def session_to_response(session: Session) -> SessionResponse:
    """Convert a session to a summary response."""
    snapshot = session.orchestrator.snapshot()
    return SessionResponse(
        id=session.id,
        concept=session.concept,
        phase=snapshot.phase,
        busy=snapshot.busy,
        scene_count=snapshot.length,
        created_at=session.created_at,
        updated_at=session.updated_at,
    )
