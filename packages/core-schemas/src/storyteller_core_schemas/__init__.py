"""Core domain models and exceptions for Storyteller."""

from storyteller_core_schemas.models import (
    # Constants
    SCENE_COUNT,
    # Enums
    RunPhase,
    SceneStatus,
    # Domain Models
    Scene,
    StoryboardSnapshot,
)
from storyteller_core_schemas.exceptions import (
    GenerationError,
    ImageError,
    NotFoundError,
    ServiceError,
    ValidationError,
)

__all__ = [
    # Constants
    "SCENE_COUNT",
    # Enums
    "RunPhase",
    "SceneStatus",
    # Domain Models
    "Scene",
    "StoryboardSnapshot",
    # Exceptions
    "GenerationError",
    "ImageError",
    "NotFoundError",
    "ServiceError",
    "ValidationError",
]
