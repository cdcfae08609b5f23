"""Core data models for Storyteller."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Number of scenes in every storyboard
SCENE_COUNT = 5


class RunPhase(str, Enum):
    """Phase of a storyboard generation run."""

    IDLE = "idle"
    NARRATING = "narrating"
    IMAGING = "imaging"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SceneStatus(str, Enum):
    """Display status of a scene's illustration."""

    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"


# === Core Models ===


class Scene(BaseModel):
    """One narration + optional illustration unit of a storyboard.

    Scenes are immutable: the imaging phase replaces a scene with an updated
    copy instead of mutating it, so published snapshots never change.
    """

    model_config = ConfigDict(frozen=True)

    narration: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    image_loading: bool = True

    @field_validator("narration")
    @classmethod
    def narration_not_blank(cls, value: str) -> str:
        """Reject whitespace-only narration."""
        if not value.strip():
            raise ValueError("narration must not be blank")
        return value

    @property
    def status(self) -> SceneStatus:
        """Illustration status as shown to the viewer."""
        if self.image_loading:
            return SceneStatus.LOADING
        if self.image_url:
            return SceneStatus.READY
        return SceneStatus.UNAVAILABLE

    def with_image(self, image_url: Optional[str]) -> "Scene":
        """Return a resolved copy of this scene (image set or left absent)."""
        return self.model_copy(update={"image_url": image_url, "image_loading": False})


class StoryboardSnapshot(BaseModel):
    """Read-only view of a storyboard run at one point in time."""

    model_config = ConfigDict(frozen=True)

    scenes: tuple[Scene, ...] = ()
    cursor: int = 0
    phase: RunPhase = RunPhase.IDLE
    busy: bool = False
    error: Optional[str] = None
    revision: int = 0

    @property
    def length(self) -> int:
        return len(self.scenes)

    @property
    def current_scene(self) -> Optional[Scene]:
        """Scene under the cursor, or None while the storyboard is empty."""
        if not self.scenes:
            return None
        return self.scenes[self.cursor]

    @property
    def counter(self) -> str:
        """Carousel counter text, e.g. '2 / 5'."""
        if not self.scenes:
            return "0 / 0"
        return f"{self.cursor + 1} / {len(self.scenes)}"

    @property
    def resolved_count(self) -> int:
        """Number of scenes whose image request has resolved."""
        return sum(1 for s in self.scenes if not s.image_loading)
