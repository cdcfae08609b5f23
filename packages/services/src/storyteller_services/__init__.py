"""Storyteller Services - Shared business logic for CLI and API.

- StoryboardOrchestrator: Narration + sequential illustration of one storyboard
- NavigationController: Carousel cursor over the current storyboard
- SessionService: In-memory viewing sessions for the API
"""

from .navigation import NavigationController
from .storyboard import SnapshotListener, StoryboardOrchestrator
from .session import Session, SessionService, get_session_service

__all__ = [
    "NavigationController",
    "SnapshotListener",
    "StoryboardOrchestrator",
    "Session",
    "SessionService",
    "get_session_service",
]
