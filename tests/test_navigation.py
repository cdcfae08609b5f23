"""Tests for the carousel cursor."""

from storyteller_services import NavigationController


def test_starts_at_first_scene():
    nav = NavigationController(5)
    assert nav.cursor == 0
    assert nav.at_start


def test_prev_at_first_scene_is_noop():
    nav = NavigationController(5)
    assert nav.prev() == 0
    assert nav.cursor == 0


def test_next_clamps_at_last_scene():
    nav = NavigationController(5)
    for _ in range(10):
        nav.next()
    assert nav.cursor == 4
    assert nav.at_end
    assert nav.next() == 4


def test_prev_and_next_move_one_scene():
    nav = NavigationController(5)
    nav.next()
    nav.next()
    assert nav.cursor == 2
    nav.prev()
    assert nav.cursor == 1


def test_empty_storyboard_keeps_cursor_at_zero():
    nav = NavigationController()
    assert nav.next() == 0
    assert nav.prev() == 0


def test_reset_returns_to_first_scene():
    nav = NavigationController(5)
    nav.next()
    nav.next()
    nav.reset(3)
    assert nav.cursor == 0
    assert nav.length == 3
