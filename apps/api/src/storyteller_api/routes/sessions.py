"""Session and storyboard routes."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from storyteller_services import SessionService
from storyteller_api.deps import get_sessions, verify_token
from storyteller_api.schemas import (
    CreateStoryboardRequest,
    ErrorResponse,
    PaginatedResponse,
    PaginationMeta,
    SessionResponse,
    StoryboardResponse,
    session_to_response,
    snapshot_to_response,
)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.post(
    "",
    response_model=StoryboardResponse,
    status_code=status.HTTP_201_CREATED,
    responses={401: {"model": ErrorResponse}},
)
async def create_session(
    token: Annotated[Optional[str], Depends(verify_token)],
    sessions: SessionService = Depends(get_sessions),
):
    """Create a viewing session with an empty storyboard."""
    session = sessions.create_session()
    return snapshot_to_response(session)


@router.get(
    "",
    response_model=PaginatedResponse[SessionResponse],
    responses={401: {"model": ErrorResponse}},
)
async def list_sessions(
    token: Annotated[Optional[str], Depends(verify_token)],
    sessions: SessionService = Depends(get_sessions),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    """List sessions."""
    items, total = sessions.list_sessions(limit=limit, offset=offset)

    return PaginatedResponse(
        data=[session_to_response(s) for s in items],
        pagination=PaginationMeta(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + limit < total,
        ),
    )


@router.get(
    "/{session_id}",
    response_model=StoryboardResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_storyboard(
    session_id: str,
    token: Annotated[Optional[str], Depends(verify_token)],
    sessions: SessionService = Depends(get_sessions),
):
    """Get the current storyboard snapshot of a session.

    Poll this while ``busy`` is true: scenes appear with ``status=loading``
    first and switch to ``ready`` or ``unavailable`` one by one, in order.
    """
    session = sessions.get_session(session_id)
    return snapshot_to_response(session)


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_session(
    session_id: str,
    token: Annotated[Optional[str], Depends(verify_token)],
    sessions: SessionService = Depends(get_sessions),
):
    """Delete a session, cancelling any run in progress."""
    sessions.delete_session(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{session_id}/storyboard",
    response_model=StoryboardResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def create_storyboard(
    session_id: str,
    request: CreateStoryboardRequest,
    response: Response,
    token: Annotated[Optional[str], Depends(verify_token)],
    sessions: SessionService = Depends(get_sessions),
    wait: bool = Query(False, description="Wait for the run to finish"),
):
    """Generate a storyboard for a concept.

    This is an async operation: returns 202 with the first snapshot and keeps
    generating in the background. Any previous storyboard of the session is
    discarded. With ``wait=true`` the full run is awaited and 200 is returned.
    """
    session = sessions.get_session(session_id)

    if wait:
        snapshot = await sessions.run(session, request.concept)
        response.status_code = status.HTTP_200_OK
        return snapshot_to_response(session, snapshot)

    sessions.start_run(session, request.concept)
    return snapshot_to_response(session)


@router.post(
    "/{session_id}/prev",
    response_model=StoryboardResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def previous_scene(
    session_id: str,
    token: Annotated[Optional[str], Depends(verify_token)],
    sessions: SessionService = Depends(get_sessions),
):
    """Move the cursor to the previous scene (stays at the first scene)."""
    session = sessions.get_session(session_id)
    session.orchestrator.prev()
    return snapshot_to_response(session)


@router.post(
    "/{session_id}/next",
    response_model=StoryboardResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def next_scene(
    session_id: str,
    token: Annotated[Optional[str], Depends(verify_token)],
    sessions: SessionService = Depends(get_sessions),
):
    """Move the cursor to the next scene (stays at the last scene)."""
    session = sessions.get_session(session_id)
    session.orchestrator.next()
    return snapshot_to_response(session)
