"""Carousel cursor over a storyboard."""


class NavigationController:
    """Bounded cursor over the scenes of the current storyboard.

    The cursor always stays within ``[0, length - 1]`` while the storyboard
    has scenes, and at 0 while it is empty.
    """

    def __init__(self, length: int = 0):
        self._length = max(length, 0)
        self._cursor = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def length(self) -> int:
        return self._length

    @property
    def at_start(self) -> bool:
        return self._cursor == 0

    @property
    def at_end(self) -> bool:
        return self._cursor >= self._length - 1

    def reset(self, length: int = 0) -> None:
        """Point the cursor at the first scene of a new storyboard."""
        self._length = max(length, 0)
        self._cursor = 0

    def prev(self) -> int:
        """Move back one scene; no-op at the first scene."""
        self._cursor = max(self._cursor - 1, 0)
        return self._cursor

    def next(self) -> int:
        """Move forward one scene; no-op at the last scene."""
        if self._length:
            self._cursor = min(self._cursor + 1, self._length - 1)
        return self._cursor
