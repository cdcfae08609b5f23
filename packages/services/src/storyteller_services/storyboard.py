"""Storyboard generation service.

Drives one storyboard run end to end:

1. Narrating: one structured request produces the text of every scene.
   Failure here is fatal to the run and nothing is published.
2. Imaging: one image request per scene, strictly in scene order. Each
   result (image or isolated failure) is merged into the storyboard and the
   updated snapshot is published before the next request starts.

A new run supersedes the previous one: its storyboard and cursor are
discarded immediately and any late results from the old run are dropped.
"""

import asyncio
import logging
from typing import Callable, Optional

from storyteller_generators.image import ImageGenerator, SceneImageResult
from storyteller_generators.narration import NarrationGenerator
from storyteller_core_schemas import (
    GenerationError,
    RunPhase,
    Scene,
    StoryboardSnapshot,
    ValidationError,
)
from .navigation import NavigationController

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[StoryboardSnapshot], None]


class StoryboardOrchestrator:
    """Owns the storyboard, the run state machine and snapshot publishing."""

    GENERIC_ERROR_MESSAGE = "Failed to generate the storyboard. Please try again."
    BLANK_CONCEPT_MESSAGE = "Please enter a concept to explain."

    def __init__(
        self,
        narration_generator: Optional[NarrationGenerator] = None,
        image_generator: Optional[ImageGenerator] = None,
        navigation: Optional[NavigationController] = None,
    ):
        """Initialize the orchestrator.

        Args:
            narration_generator: Scene text generator (default uses the global client)
            image_generator: Scene illustration generator (default uses the global client)
            navigation: Cursor controller (a fresh one if not provided)
        """
        self.narration_generator = narration_generator or NarrationGenerator()
        self.image_generator = image_generator or ImageGenerator()
        self.navigation = navigation or NavigationController()

        self._scenes: tuple[Scene, ...] = ()
        self._phase = RunPhase.IDLE
        self._busy = False
        self._error: Optional[str] = None
        self._revision = 0
        self._run_id = 0
        self._listeners: list[SnapshotListener] = []

    # === Read accessors ===

    @property
    def storyboard(self) -> tuple[Scene, ...]:
        return self._scenes

    @property
    def cursor(self) -> int:
        return self.navigation.cursor

    @property
    def phase(self) -> RunPhase:
        return self._phase

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def error(self) -> Optional[str]:
        return self._error

    def snapshot(self) -> StoryboardSnapshot:
        """Current state as an immutable snapshot."""
        return StoryboardSnapshot(
            scenes=self._scenes,
            cursor=self.navigation.cursor,
            phase=self._phase,
            busy=self._busy,
            error=self._error,
            revision=self._revision,
        )

    # === Publishing ===

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener for published snapshots.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        self._revision += 1
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            # A failing listener must not abort the run
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener failed at revision %d", snapshot.revision)

    # === Navigation ===

    def prev(self) -> int:
        """Show the previous scene."""
        return self.navigation.prev()

    def next(self) -> int:
        """Show the next scene."""
        return self.navigation.next()

    # === Run ===

    def _is_current(self, run_id: int) -> bool:
        return run_id == self._run_id

    def _install(self, scenes: list[Scene]) -> None:
        self._scenes = tuple(scenes)
        self.navigation.reset(len(self._scenes))

    def _merge(self, index: int, result: SceneImageResult) -> None:
        scenes = list(self._scenes)
        scenes[index] = scenes[index].with_image(result.image_url)
        self._scenes = tuple(scenes)

    def begin_run(self, concept: str) -> int:
        """Discard the current storyboard and enter the narrating phase.

        Any run still in flight is superseded from this point on.

        Returns:
            Id of the new run, to be passed to ``complete_run``

        Raises:
            ValidationError: If the concept is blank (no state is changed)
        """
        if not concept or not concept.strip():
            raise ValidationError(self.BLANK_CONCEPT_MESSAGE, field="concept")

        self._run_id += 1
        run_id = self._run_id

        self._scenes = ()
        self.navigation.reset(0)
        self._error = None
        self._busy = True
        self._phase = RunPhase.NARRATING
        logger.info("Starting storyboard run %d for %r", run_id, concept)
        return run_id

    async def complete_run(self, run_id: int, concept: str) -> Optional[StoryboardSnapshot]:
        """Narrate and illustrate a run started with ``begin_run``.

        Returns:
            Final snapshot of the run, or None if a newer run superseded it
        """
        try:
            await self._run(run_id, concept)
        except asyncio.CancelledError:
            if self._is_current(run_id):
                logger.info("Storyboard run %d cancelled", run_id)
                self._phase = RunPhase.CANCELLED
            raise
        finally:
            if self._is_current(run_id):
                self._busy = False

        if not self._is_current(run_id):
            logger.debug("Dropped results of superseded run %d", run_id)
            return None
        return self.snapshot()

    async def generate_storyboard(self, concept: str) -> Optional[StoryboardSnapshot]:
        """Generate a storyboard for a concept.

        Args:
            concept: The idea to explain

        Returns:
            Final snapshot of the run, or None if a newer run superseded it

        Raises:
            ValidationError: If the concept is blank (no state is changed)
        """
        run_id = self.begin_run(concept)
        return await self.complete_run(run_id, concept)

    async def _run(self, run_id: int, concept: str) -> None:
        """Narrating and imaging phases of one run."""
        try:
            scenes = await self.narration_generator.generate(concept)
        except GenerationError as e:
            if self._is_current(run_id):
                logger.error("Storyboard run %d failed: %s", run_id, e.message)
                self._phase = RunPhase.FAILED
                self._error = self.GENERIC_ERROR_MESSAGE
            return

        if not self._is_current(run_id):
            return

        self._install(scenes)
        self._phase = RunPhase.IMAGING
        self._publish()

        for index, scene in enumerate(scenes):
            result = await self.image_generator.generate_scene_image(
                scene.narration,
                scene_number=index + 1,
            )
            if not self._is_current(run_id):
                return
            self._merge(index, result)
            self._publish()

        self._phase = RunPhase.COMPLETED
        missing = sum(1 for s in self._scenes if s.image_url is None)
        logger.info(
            "Storyboard run %d completed: %d scenes, %d without image",
            run_id,
            len(self._scenes),
            missing,
        )
