"""Scene illustration generator."""

import base64
import logging
from dataclasses import dataclass
from typing import Optional

from storyteller_gemini_client import GeminiClient
from storyteller_core_schemas import ImageError
from storyteller_generators.templates import render
from storyteller_generators.templates.storyboard import ILLUSTRATION_PROMPT

logger = logging.getLogger(__name__)

DEFAULT_CHARACTER = (
    "A cute, small robot character named Glitch with a single glowing purple eye."
)
DEFAULT_STYLE = (
    "16-bit pixel art, dark cyberpunk style with neon accents (purple, blue, pink), "
    "consistent proportions, clear outlines."
)


@dataclass
class SceneImageResult:
    """Result of generating a single scene illustration."""

    scene_number: int
    image_url: Optional[str]
    error: Optional[str] = None

    @property
    def image_loading(self) -> bool:
        # A result only exists once the request has resolved
        return False

    @property
    def succeeded(self) -> bool:
        return self.image_url is not None


def to_data_uri(image_data: bytes, mime_type: str) -> str:
    """Wrap raw image bytes in a base64 data URI."""
    encoded = base64.b64encode(image_data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class ImageGenerator:
    """Generates one illustration per storyboard scene.

    Every image uses the same character and style descriptors so the scenes
    read as one consistent story. Failures never leave this class: they are
    logged and reported as a result without an image.
    """

    ASPECT_RATIO = "1:1"
    MIME_TYPE = "image/jpeg"

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        character: str = DEFAULT_CHARACTER,
        style: str = DEFAULT_STYLE,
    ):
        """Initialize the image generator.

        Args:
            client: Gemini client (uses global client if not provided)
            character: Protagonist description repeated in every prompt
            style: Art style description repeated in every prompt
        """
        if client is None:
            from storyteller_gemini_client import get_client

            client = get_client()
        self.client = client
        self.character = character
        self.style = style

    def build_prompt(self, narration: str) -> str:
        """Build the illustration prompt for one scene."""
        return render(
            ILLUSTRATION_PROMPT,
            character=self.character,
            narration=narration.strip(),
            style=self.style,
        )

    async def _request_image(self, narration: str, scene_number: int) -> str:
        """Request one image and return it as a data URI.

        Raises:
            ImageError: On any failure of the request or its payload
        """
        try:
            image_data = await self.client.generate_image(
                prompt=self.build_prompt(narration),
                aspect_ratio=self.ASPECT_RATIO,
                mime_type=self.MIME_TYPE,
            )
            if not image_data:
                raise RuntimeError("Empty image payload")
            return to_data_uri(image_data, self.MIME_TYPE)
        except ImageError:
            raise
        except Exception as e:
            raise ImageError(scene_number, str(e) or type(e).__name__) from e

    async def generate_scene_image(
        self,
        narration: str,
        scene_number: int,
    ) -> SceneImageResult:
        """Generate the illustration for one scene.

        Args:
            narration: The scene's narration text
            scene_number: 1-based scene number, used for reporting

        Returns:
            SceneImageResult with ``image_url`` set on success and None on failure
        """
        try:
            image_url = await self._request_image(narration, scene_number)
        except ImageError as e:
            logger.warning("Error generating image for scene %d: %s", scene_number, e.reason)
            return SceneImageResult(scene_number=scene_number, image_url=None, error=e.message)

        logger.debug("Generated image for scene %d", scene_number)
        return SceneImageResult(scene_number=scene_number, image_url=image_url)
