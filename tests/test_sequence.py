"""Tests for sequence reindexing: pure reorder() and SequenceManager against a store."""

from __future__ import annotations

import pytest

from symposium.core.constants import SequenceKind
from symposium.core.sequence import SequenceManager, reorder
from symposium.core.utils import InvalidPositionError, NotFoundError, ValidationError
from tests.helpers import InMemoryStore


def _group(n: int) -> list[dict]:
    return [{"id": 100 + i, "sequence_order": i} for i in range(1, n + 1)]


# ============================================================
# reorder()
# ============================================================

class TestReorder:

    def test_move_later_shifts_between_down(self):
        # A B C D, move A to 3 -> B C A D
        items = [
            {"id": 1, "sequence_order": 1},
            {"id": 2, "sequence_order": 2},
            {"id": 3, "sequence_order": 3},
            {"id": 4, "sequence_order": 4},
        ]
        assert reorder(items, 1, 3) == {1: 3, 2: 1, 3: 2, 4: 4}

    def test_move_earlier_shifts_between_up(self):
        # A B C D, move D to 2 -> A D B C
        items = _group(4)
        result = reorder(items, 104, 2)
        assert result == {101: 1, 104: 2, 102: 3, 103: 4}

    def test_move_third_to_front(self):
        # A B C D, move C to 1 -> C A B D
        items = [{"id": i, "sequence_order": i} for i in (1, 2, 3, 4)]
        assert reorder(items, 3, 1) == {1: 2, 2: 3, 3: 1, 4: 4}

    def test_same_position_is_noop(self):
        items = _group(5)
        assert reorder(items, 103, 3) == {i["id"]: i["sequence_order"] for i in items}

    def test_every_move_yields_dense_permutation(self):
        for n in range(1, 7):
            items = _group(n)
            for old in range(1, n + 1):
                for new in range(1, n + 1):
                    result = reorder(items, 100 + old, new)
                    assert sorted(result.values()) == list(range(1, n + 1))
                    assert result[100 + old] == new
                    assert set(result) == {i["id"] for i in items}

    def test_items_outside_range_keep_position(self):
        items = _group(6)
        result = reorder(items, 102, 4)
        assert result[101] == 1
        assert result[105] == 5
        assert result[106] == 6

    def test_idempotent(self):
        items = _group(5)
        first = reorder(items, 101, 4)
        reapplied = [{"id": i, "sequence_order": o} for i, o in first.items()]
        assert reorder(reapplied, 101, 4) == first

    def test_input_order_does_not_matter(self):
        items = list(reversed(_group(4)))
        assert reorder(items, 101, 2) == {101: 2, 102: 1, 103: 3, 104: 4}

    def test_gaps_are_closed(self):
        items = [
            {"id": 1, "sequence_order": 2},
            {"id": 2, "sequence_order": 5},
            {"id": 3, "sequence_order": 9},
        ]
        result = reorder(items, 3, 1)
        assert result == {3: 1, 1: 2, 2: 3}

    def test_duplicate_orders_ranked_by_id(self):
        items = [
            {"id": 7, "sequence_order": 1},
            {"id": 5, "sequence_order": 1},
            {"id": 6, "sequence_order": 2},
        ]
        assert reorder(items, 6, 2) == {5: 1, 6: 2, 7: 3}

    @pytest.mark.parametrize("position", [0, -1, 5, 99])
    def test_position_out_of_range(self, position):
        with pytest.raises(InvalidPositionError):
            reorder(_group(4), 101, position)

    @pytest.mark.parametrize("position", ["2", 2.0, None, True])
    def test_position_not_integer(self, position):
        with pytest.raises(InvalidPositionError):
            reorder(_group(4), 101, position)

    def test_invalid_position_is_validation_error(self):
        with pytest.raises(ValidationError):
            reorder(_group(2), 101, 3)

    def test_empty_group(self):
        with pytest.raises(InvalidPositionError):
            reorder([], 1, 1)

    def test_unknown_item(self):
        with pytest.raises(NotFoundError):
            reorder(_group(3), 999, 1)


# ============================================================
# SequenceManager
# ============================================================

@pytest.fixture
def store():
    return InMemoryStore()


def _task_orders(store, objective_id):
    return [(t["title"], t["sequence_order"]) for t in store.list_tasks(objective_id)]


class TestSequenceManager:

    def test_reorder_task(self, store):
        uid = store.seed_user()
        oid = store.seed_objective(store.seed_project(uid))
        a = store.seed_task(oid, "A")
        for title in ("B", "C", "D"):
            store.seed_task(oid, title)

        moved = SequenceManager(store).reorder_task(uid, a, 3)

        assert moved["sequence_order"] == 3
        assert _task_orders(store, oid) == [("B", 1), ("C", 2), ("A", 3), ("D", 4)]

    def test_only_changed_rows_written_once(self, store):
        uid = store.seed_user()
        oid = store.seed_objective(store.seed_project(uid))
        ids = [store.seed_task(oid, t) for t in "ABCDE"]

        SequenceManager(store).reorder_task(uid, ids[3], 2)

        assert len(store.sequence_writes) == 1
        kind, parent, orders = store.sequence_writes[0]
        assert kind == SequenceKind.TASK
        assert parent == oid
        assert orders == {ids[3]: 2, ids[1]: 3, ids[2]: 4}

    def test_noop_move_writes_nothing(self, store):
        uid = store.seed_user()
        oid = store.seed_objective(store.seed_project(uid))
        tid = store.seed_task(oid, "A")
        store.seed_task(oid, "B")

        SequenceManager(store).reorder_task(uid, tid, 1)

        assert store.sequence_writes == []

    def test_gapped_group_is_normalized(self, store):
        uid = store.seed_user()
        oid = store.seed_objective(store.seed_project(uid))
        a = store.seed_task(oid, "A", sequence_order=3)
        store.seed_task(oid, "B", sequence_order=7)

        SequenceManager(store).reorder_task(uid, a, 1)

        assert _task_orders(store, oid) == [("A", 1), ("B", 2)]

    def test_other_objectives_untouched(self, store):
        uid = store.seed_user()
        pid = store.seed_project(uid)
        first = store.seed_objective(pid, "First")
        second = store.seed_objective(pid, "Second")
        a = store.seed_task(first, "A")
        store.seed_task(first, "B")
        store.seed_task(second, "X")
        store.seed_task(second, "Y")

        SequenceManager(store).reorder_task(uid, a, 2)

        assert _task_orders(store, second) == [("X", 1), ("Y", 2)]

    def test_reorder_objective(self, store):
        uid = store.seed_user()
        pid = store.seed_project(uid)
        ids = [store.seed_objective(pid, t) for t in ("One", "Two", "Three")]

        moved = SequenceManager(store).reorder_objective(uid, ids[2], 1)

        assert moved["sequence_order"] == 1
        orders = {o["title"]: o["sequence_order"] for o in store.objectives.values()}
        assert orders == {"Three": 1, "One": 2, "Two": 3}

    def test_task_of_other_user_not_found(self, store):
        owner = store.seed_user("owner")
        intruder = store.seed_user("intruder")
        oid = store.seed_objective(store.seed_project(owner))
        tid = store.seed_task(oid, "A")
        store.seed_task(oid, "B")

        with pytest.raises(NotFoundError, match=f"Task {tid} not found"):
            SequenceManager(store).reorder_task(intruder, tid, 2)
        assert store.sequence_writes == []

    def test_missing_objective(self, store):
        uid = store.seed_user()
        with pytest.raises(NotFoundError, match="Objective 42 not found"):
            SequenceManager(store).reorder_objective(uid, 42, 1)

    def test_invalid_position_writes_nothing(self, store):
        uid = store.seed_user()
        oid = store.seed_objective(store.seed_project(uid))
        tid = store.seed_task(oid, "A")

        with pytest.raises(InvalidPositionError):
            SequenceManager(store).reorder_task(uid, tid, 2)
        assert store.sequence_writes == []
