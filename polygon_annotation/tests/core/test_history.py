"""Tests for the linear undo/redo history."""

from polygon_annotation.core.editor.history import History
from polygon_annotation.core.editor.state import Polygon
from polygon_annotation.tests.conftest import make_points


def polygons(*ids):
    return [
        Polygon(id=i, points=make_points([(0, 0), (1, 0), (0, 1)]), closed=True)
        for i in ids
    ]


def ids(snapshot):
    return [p.id for p in snapshot]


class TestHistory:
    def test_starts_with_empty_snapshot(self):
        history = History()
        assert len(history) == 1
        assert not history.can_undo
        assert not history.can_redo
        assert history.undo() is None
        assert history.redo() is None

    def test_undo_redo_round_trip(self):
        history = History()
        history.commit(polygons("a"))
        history.commit(polygons("a", "b"))
        history.commit(polygons("a", "b", "c"))

        assert ids(history.undo()) == ["a", "b"]
        assert ids(history.undo()) == ["a"]
        assert ids(history.redo()) == ["a", "b"]
        assert ids(history.redo()) == ["a", "b", "c"]
        assert history.redo() is None

    def test_undo_to_empty(self):
        history = History()
        history.commit(polygons("a"))
        assert history.undo() == []
        assert history.undo() is None

    def test_commit_discards_redo_branch(self):
        history = History()
        history.commit(polygons("a"))
        history.commit(polygons("a", "b"))
        history.undo()

        history.commit(polygons("a", "x"))
        assert not history.can_redo
        assert ids(history.undo()) == ["a"]
        assert ids(history.redo()) == ["a", "x"]

    def test_snapshots_are_copies(self):
        history = History()
        current = polygons("a")
        history.commit(current)
        current[0].points.clear()
        history.commit(polygons("b"))

        restored = history.undo()
        assert len(restored[0].points) == 3
        restored[0].points.clear()
        history.redo()
        assert len(history.undo()[0].points) == 3

    def test_limit_drops_oldest(self):
        history = History(limit=3)
        for name in "abcd":
            history.commit(polygons(name))
        assert len(history) == 3
        assert ids(history.undo()) == ["c"]
        assert ids(history.undo()) == ["b"]
        assert history.undo() is None

    def test_reset(self):
        history = History()
        history.commit(polygons("a"))
        history.reset()
        assert history.cursor == 0
        assert len(history) == 1
