"""Gemini API client wrapper for Storyteller."""

import os
from typing import Any, Optional

from google import genai
from google.genai import types
from pydantic import TypeAdapter


def _schema_name(schema: Any) -> str:
    """Readable name for a response schema (model class or ``list[Model]``)."""
    args = getattr(schema, "__args__", None)
    if args:
        inner = ", ".join(_schema_name(a) for a in args)
        return f"{getattr(schema, '__name__', 'schema')}[{inner}]"
    return getattr(schema, "__name__", repr(schema))


class GeminiClient:
    """Wrapper for Google Gemini API."""

    DEFAULT_MODEL = "gemini-2.5-flash"
    IMAGE_MODEL = "imagen-4.0-generate-001"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        image_model: Optional[str] = None,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Google API key (defaults to GOOGLE_API_KEY env var)
            model: Model to use for text generation
            image_model: Model to use for image generation
        """
        # Standardize on GOOGLE_API_KEY (unset GEMINI_API_KEY to avoid SDK warning)
        if "GEMINI_API_KEY" in os.environ:
            del os.environ["GEMINI_API_KEY"]

        self.api_key = api_key or os.environ.get("GOOGLE_API_KEY")
        if not self.api_key:
            raise ValueError(
                "GOOGLE_API_KEY environment variable is required. "
                "Get one at https://aistudio.google.com/apikey"
            )

        self.model = model or self.DEFAULT_MODEL
        self.image_model = image_model or self.IMAGE_MODEL

        self.client = genai.Client(api_key=self.api_key)

    def _extract_json_text(self, response) -> str:
        """Extract JSON text from a Gemini response.

        The response is requested with a JSON mime type and schema, so the
        text is used as-is: no code-fence stripping or other recovery.

        Raises:
            RuntimeError: If the response carries no usable text
        """
        if response is None:
            raise RuntimeError("Gemini API returned None response")

        if not getattr(response, "candidates", None):
            raise RuntimeError(
                "Gemini API response has no candidates. "
                "This may indicate content was blocked or an API error occurred."
            )

        candidate = response.candidates[0]

        finish_reason = getattr(candidate, "finish_reason", None)
        if finish_reason is not None and "SAFETY" in str(finish_reason):
            raise RuntimeError(
                f"Gemini blocked response due to safety filters: {finish_reason}"
            )

        text = response.text
        if text is None or not text.strip():
            raise RuntimeError(
                "Gemini API returned empty text. "
                "Check if the prompt was valid and not blocked."
            )

        return text.strip()

    async def generate_structured(
        self,
        prompt: str,
        response_schema: Any,
        system_instruction: Optional[str] = None,
        temperature: float = 0.7,
    ) -> Any:
        """Generate structured output matching a Pydantic schema.

        Args:
            prompt: User prompt
            response_schema: Pydantic model class, or ``list[Model]``
            system_instruction: System instruction for the model
            temperature: Sampling temperature

        Returns:
            Parsed response matching the schema

        Raises:
            RuntimeError: If the response is empty or does not match the schema
        """
        config = types.GenerateContentConfig(
            temperature=temperature,
            response_mime_type="application/json",
            response_schema=response_schema,
        )
        if system_instruction:
            config.system_instruction = system_instruction

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )

        json_text = self._extract_json_text(response)

        try:
            return TypeAdapter(response_schema).validate_json(json_text)
        except Exception as e:
            preview = json_text[:200] + "..." if len(json_text) > 200 else json_text
            raise RuntimeError(
                f"Failed to parse Gemini response as {_schema_name(response_schema)}: {e}\n"
                f"Response preview: {preview}"
            ) from e

    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: str = "1:1",
        mime_type: str = "image/jpeg",
    ) -> bytes:
        """Generate a single image.

        Args:
            prompt: Image generation prompt
            aspect_ratio: Aspect ratio (1:1, 3:4, 4:3, 9:16, 16:9)
            mime_type: Output encoding (image/jpeg or image/png)

        Returns:
            Raw image bytes

        Raises:
            RuntimeError: If the response contains no image
        """
        config = types.GenerateImagesConfig(
            number_of_images=1,
            output_mime_type=mime_type,
            aspect_ratio=aspect_ratio,
        )

        response = await self.client.aio.models.generate_images(
            model=self.image_model,
            prompt=prompt,
            config=config,
        )

        generated = getattr(response, "generated_images", None)
        if not generated:
            raise RuntimeError("No image generated in response")

        first = generated[0]
        image = getattr(first, "image", None)
        image_data = getattr(image, "image_bytes", None) if image else None
        if not image_data:
            reason = getattr(first, "rai_filtered_reason", None)
            if reason:
                raise RuntimeError(f"Image was filtered: {reason}")
            raise RuntimeError("No image generated in response")

        return image_data


# Singleton instance for convenience
_client: Optional[GeminiClient] = None


def get_client(model: Optional[str] = None, image_model: Optional[str] = None) -> GeminiClient:
    """Get or create the global Gemini client.

    Model overrides only apply when the client is first created.
    """
    global _client
    if _client is None:
        _client = GeminiClient(model=model, image_model=image_model)
    return _client


def set_client(client: Optional[GeminiClient]) -> None:
    """Set (or reset with None) the global Gemini client."""
    global _client
    _client = client
