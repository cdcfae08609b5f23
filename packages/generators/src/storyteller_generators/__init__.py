"""Generation pipelines for Storyteller."""

from .narration import NarrationGenerator, SceneNarration
from .image import ImageGenerator, SceneImageResult

__all__ = [
    "NarrationGenerator",
    "SceneNarration",
    "ImageGenerator",
    "SceneImageResult",
]
