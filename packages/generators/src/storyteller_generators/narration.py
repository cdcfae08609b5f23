"""Scene narration generator."""

import logging
from typing import Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError

from storyteller_gemini_client import GeminiClient
from storyteller_core_schemas import SCENE_COUNT, GenerationError, Scene
from storyteller_generators.templates import render
from storyteller_generators.templates.storyboard import (
    NARRATION_PROMPT,
    NARRATION_SYSTEM_PROMPT,
)

logger = logging.getLogger(__name__)


# Response schema for structured output
class SceneNarration(BaseModel):
    """One scene of the narration breakdown."""

    scene: int
    narration: str


class NarrationGenerator:
    """Generates the text-only scene breakdown for a concept."""

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        scene_count: int = SCENE_COUNT,
    ):
        """Initialize the narration generator.

        Args:
            client: Gemini client (uses global client if not provided)
            scene_count: Number of scenes to request
        """
        if client is None:
            from storyteller_gemini_client import get_client

            client = get_client()
        self.client = client
        self.scene_count = scene_count

    def build_prompt(self, concept: str) -> str:
        """Build the narration request prompt for a concept."""
        return render(
            NARRATION_PROMPT,
            concept=concept.strip(),
            scene_count=self.scene_count,
            sentences="2-3",
        )

    async def generate(self, concept: str) -> list[Scene]:
        """Generate the narration for every scene of a storyboard.

        Args:
            concept: Non-blank concept to explain

        Returns:
            Scenes in the order returned by the service, images pending

        Raises:
            GenerationError: If the call fails or the response does not match
                the expected shape. Nothing is partially accepted.
        """
        prompt = self.build_prompt(concept)

        try:
            response = await self.client.generate_structured(
                prompt=prompt,
                response_schema=list[SceneNarration],
                system_instruction=NARRATION_SYSTEM_PROMPT,
            )
        except Exception as e:
            raise GenerationError(
                f"Narration request failed: {e}",
                details={"concept": concept},
            ) from e

        return self._convert_scenes(response, concept)

    def _convert_scenes(self, response: list[SceneNarration], concept: str) -> list[Scene]:
        """Convert the structured response into Scene models."""
        if not isinstance(response, list):
            raise GenerationError(
                "Narration response is not a list of scenes",
                details={"concept": concept},
            )

        if len(response) != self.scene_count:
            raise GenerationError(
                f"Expected {self.scene_count} scenes, got {len(response)}",
                details={"concept": concept, "scene_count": len(response)},
            )

        scenes = []
        for position, item in enumerate(response, start=1):
            try:
                scenes.append(Scene(narration=item.narration.strip()))
            except (AttributeError, PydanticValidationError) as e:
                raise GenerationError(
                    f"Scene {position} has no usable narration",
                    details={"concept": concept, "position": position},
                ) from e

        logger.debug("Narrated %d scenes for %r", len(scenes), concept)
        return scenes
