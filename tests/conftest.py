"""Shared fixtures: fake Gemini clients standing in for the network."""

import asyncio
from types import SimpleNamespace
from typing import Optional

import pytest

from storyteller_generators import ImageGenerator, NarrationGenerator, SceneNarration
from storyteller_services import StoryboardOrchestrator

ROCKET_NARRATIONS = [
    "Glitch looks up at a tall rocket. It is ready to fly!",
    "The rocket burns fuel. Hot gas rushes out of the bottom.",
    "The gas pushes down, so the rocket goes up. Whoosh!",
    "Higher and higher it climbs. The sky turns dark.",
    "The rocket reaches space. Glitch waves at the stars.",
]

FAKE_JPEG = b"\xff\xd8\xff\xe0fake-jpeg"


class FakeGeminiClient:
    """Scripted stand-in for GeminiClient.

    Args:
        narration_batches: Narration lists returned by successive text calls
        narration_error: Exception raised by every text call
        image_failures: 0-based image call indexes that raise
        image_gate: Event every image call waits for before answering
    """

    model = "fake-text"
    image_model = "fake-image"

    def __init__(
        self,
        narration_batches: Optional[list[list[str]]] = None,
        narration_error: Optional[Exception] = None,
        image_failures: tuple[int, ...] = (),
        image_gate: Optional[asyncio.Event] = None,
        image_data: bytes = FAKE_JPEG,
    ):
        self.narration_batches = list(narration_batches or [ROCKET_NARRATIONS])
        self.narration_error = narration_error
        self.image_failures = set(image_failures)
        self.image_gate = image_gate
        self.image_data = image_data
        self.structured_calls: list[dict] = []
        self.image_calls: list[dict] = []

    @property
    def call_count(self) -> int:
        return len(self.structured_calls) + len(self.image_calls)

    async def generate_structured(
        self,
        prompt,
        response_schema,
        system_instruction=None,
        temperature=0.7,
    ):
        self.structured_calls.append({"prompt": prompt, "response_schema": response_schema})
        if self.narration_error is not None:
            raise self.narration_error
        batch = self.narration_batches[0]
        if len(self.narration_batches) > 1:
            self.narration_batches.pop(0)
        return [SceneNarration(scene=i + 1, narration=text) for i, text in enumerate(batch)]

    async def generate_image(self, prompt, aspect_ratio="1:1", mime_type="image/jpeg"):
        index = len(self.image_calls)
        self.image_calls.append(
            {"prompt": prompt, "aspect_ratio": aspect_ratio, "mime_type": mime_type}
        )
        if self.image_gate is not None:
            await self.image_gate.wait()
        if index in self.image_failures:
            raise RuntimeError("quota exceeded")
        return self.image_data


class FakeModels:
    """Stand-in for ``genai.Client().aio.models``."""

    def __init__(self, content_response=None, images_response=None):
        self.content_response = content_response
        self.images_response = images_response
        self.content_calls: list[dict] = []
        self.images_calls: list[dict] = []

    async def generate_content(self, model, contents, config):
        self.content_calls.append({"model": model, "contents": contents, "config": config})
        return self.content_response

    async def generate_images(self, model, prompt, config):
        self.images_calls.append({"model": model, "prompt": prompt, "config": config})
        return self.images_response


def content_response(text: Optional[str], finish_reason: str = "STOP"):
    """Build a generate_content response with one candidate."""
    return SimpleNamespace(
        candidates=[SimpleNamespace(finish_reason=finish_reason)],
        text=text,
    )


def images_response(image_bytes: Optional[bytes], rai_filtered_reason: Optional[str] = None):
    """Build a generate_images response with one generated image."""
    image = SimpleNamespace(image_bytes=image_bytes) if image_bytes is not None else None
    return SimpleNamespace(
        generated_images=[SimpleNamespace(image=image, rai_filtered_reason=rai_filtered_reason)]
    )


@pytest.fixture
def fake_client() -> FakeGeminiClient:
    return FakeGeminiClient()


def make_orchestrator(client: FakeGeminiClient) -> StoryboardOrchestrator:
    return StoryboardOrchestrator(
        narration_generator=NarrationGenerator(client),
        image_generator=ImageGenerator(client),
    )


@pytest.fixture
def orchestrator(fake_client) -> StoryboardOrchestrator:
    return make_orchestrator(fake_client)
