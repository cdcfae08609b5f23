"""Viewing session management for the API and other long-lived frontends."""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from storyteller_core_schemas import NotFoundError, StoryboardSnapshot, ValidationError
from .storyboard import StoryboardOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """One viewer's storyboard, cursor and in-flight run."""

    id: str
    orchestrator: StoryboardOrchestrator
    concept: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()


class SessionService:
    """Service for managing in-memory viewing sessions."""

    def __init__(
        self,
        orchestrator_factory: Optional[Callable[[], StoryboardOrchestrator]] = None,
    ):
        """Initialize the session service.

        Args:
            orchestrator_factory: Builds the orchestrator of each new session
        """
        self._orchestrator_factory = orchestrator_factory or StoryboardOrchestrator
        self._sessions: dict[str, Session] = {}

    def create_session(self) -> Session:
        """Create a new, empty session."""
        session = Session(
            id=str(uuid.uuid4()),
            orchestrator=self._orchestrator_factory(),
        )
        self._sessions[session.id] = session
        return session

    def get_session(self, session_id: str) -> Session:
        """Get session by ID.

        Raises:
            NotFoundError: If the session does not exist
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError("Session", session_id)
        return session

    def list_sessions(self, limit: int = 100, offset: int = 0) -> tuple[list[Session], int]:
        """List sessions, newest first.

        Returns:
            Tuple of (sessions, total_count)
        """
        sessions = sorted(self._sessions.values(), key=lambda s: s.created_at, reverse=True)
        total = len(sessions)
        return sessions[offset:offset + limit], total

    def delete_session(self, session_id: str) -> None:
        """Delete a session, cancelling its run if one is in flight.

        Raises:
            NotFoundError: If the session does not exist
        """
        session = self.get_session(session_id)
        if session.running:
            session.task.cancel()
        del self._sessions[session_id]

    def _prepare_run(self, session: Session, concept: str) -> None:
        if not concept or not concept.strip():
            raise ValidationError(
                StoryboardOrchestrator.BLANK_CONCEPT_MESSAGE, field="concept"
            )

        # A new run supersedes the one in flight
        if session.running:
            logger.info("Cancelling in-flight run of session %s", session.id)
            session.task.cancel()

        session.concept = concept.strip()
        session.updated_at = datetime.now()

    def start_run(self, session: Session, concept: str) -> asyncio.Task:
        """Start a storyboard run in the background.

        Args:
            session: The session to run in
            concept: The idea to explain

        Returns:
            The asyncio Task

        Raises:
            ValidationError: If the concept is blank
        """
        self._prepare_run(session, concept)
        # Clear the storyboard before returning so callers never see the old one
        run_id = session.orchestrator.begin_run(concept)
        task = asyncio.create_task(session.orchestrator.complete_run(run_id, concept))
        session.task = task
        return task

    async def run(self, session: Session, concept: str) -> StoryboardSnapshot:
        """Run a storyboard to completion and return the final snapshot.

        Raises:
            ValidationError: If the concept is blank
        """
        self._prepare_run(session, concept)
        session.task = None
        await session.orchestrator.generate_storyboard(concept)
        session.updated_at = datetime.now()
        return session.orchestrator.snapshot()

    def cleanup_old_sessions(self, max_age_hours: int = 24) -> int:
        """Remove idle sessions not updated within ``max_age_hours``.

        Returns:
            Number of sessions removed
        """
        cutoff = datetime.now() - timedelta(hours=max_age_hours)
        to_remove = [
            session_id
            for session_id, session in self._sessions.items()
            if not session.running and session.updated_at < cutoff
        ]

        for session_id in to_remove:
            del self._sessions[session_id]

        return len(to_remove)


# Global session service instance
_session_service: Optional[SessionService] = None


def get_session_service() -> SessionService:
    """Get the global session service instance."""
    global _session_service
    if _session_service is None:
        _session_service = SessionService()
    return _session_service


def set_session_service(service: Optional[SessionService]) -> None:
    """Set (or reset with None) the global session service instance."""
    global _session_service
    _session_service = service
