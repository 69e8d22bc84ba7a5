"""Tests for ContextGatherer: ownership, ordering, hidden messages, card inclusion."""

from __future__ import annotations

import pytest

from symposium.core.context import (
    CardEntry, ContextGatherer, Heading, HistoryEntry, TaskEntry, card_is_included,
)
from symposium.core.utils import NotFoundError, ValidationError
from tests.helpers import InMemoryStore

T7 = 7


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def seeded(store):
    uid = store.seed_user()
    pid = store.seed_project(uid, "Launch", "Ship the product")
    oid = store.seed_objective(pid, "Marketing", "Get the word out")
    return store, uid, oid


# ============================================================
# card_is_included
# ============================================================

def test_visible_card_always_included():
    assert card_is_included({"is_hidden": False, "tag_ids": []}, [])


def test_hidden_card_needs_active_tag():
    card = {"is_hidden": True, "tag_ids": [T7, 9]}
    assert card_is_included(card, [T7])
    assert not card_is_included(card, [])
    assert not card_is_included(card, [3])


# ============================================================
# Lineage
# ============================================================

def test_headings(seeded):
    store, uid, oid = seeded
    ctx = ContextGatherer(store).gather(uid, oid, [], user_message="hi")

    assert ctx.project == Heading("Launch", "Ship the product")
    assert ctx.objective == Heading("Marketing", "Get the word out")
    assert ctx.user_message == "hi"


def test_other_users_objective_not_found(seeded):
    store, _, oid = seeded
    stranger = store.seed_user("stranger")
    with pytest.raises(NotFoundError):
        ContextGatherer(store).gather(stranger, oid, [])


def test_missing_objective_not_found(seeded):
    store, uid, _ = seeded
    with pytest.raises(NotFoundError, match="Objective 999 not found"):
        ContextGatherer(store).gather(uid, 999, [])


# ============================================================
# Tasks
# ============================================================

def test_tasks_sorted_with_positions(seeded):
    store, uid, oid = seeded
    store.seed_task(oid, "Second", sequence_order=2, is_completed=True)
    store.seed_task(oid, "First", "Draft copy", sequence_order=1)

    ctx = ContextGatherer(store).gather(uid, oid, [])

    assert ctx.tasks == (
        TaskEntry(1, "First", "Draft copy", False),
        TaskEntry(2, "Second", "", True),
    )


def test_task_positions_ignore_gaps(seeded):
    store, uid, oid = seeded
    store.seed_task(oid, "A", sequence_order=4)
    store.seed_task(oid, "B", sequence_order=10)

    ctx = ContextGatherer(store).gather(uid, oid, [])

    assert [t.position for t in ctx.tasks] == [1, 2]


# ============================================================
# Messages
# ============================================================

def test_hidden_messages_excluded_and_chronological(seeded):
    store, uid, oid = seeded
    store.seed_message(oid, "user", "first")
    store.seed_message(oid, "assistant", "secret", is_hidden=True)
    store.seed_message(oid, "assistant", "second")

    ctx = ContextGatherer(store).gather(uid, oid, [])

    assert ctx.messages == (
        HistoryEntry("user", "first"),
        HistoryEntry("assistant", "second"),
    )


def test_excluded_message_ids_dropped(seeded):
    store, uid, oid = seeded
    store.seed_message(oid, "user", "old question")
    current = store.seed_message(oid, "user", "new question")

    ctx = ContextGatherer(store).gather(uid, oid, [], exclude_message_ids=[current])

    assert ctx.messages == (HistoryEntry("user", "old question"),)


# ============================================================
# Cards
# ============================================================

class TestCards:

    def test_hidden_card_with_active_tag_included_once(self, seeded):
        store, uid, oid = seeded
        store.seed_card(uid, "Brand voice", "Friendly", is_hidden=True, tag_ids=(T7, 8))

        ctx = ContextGatherer(store).gather(uid, oid, [T7, 8])

        assert ctx.cards == (CardEntry("Brand voice", "Friendly"),)

    def test_hidden_card_without_active_tag_excluded(self, seeded):
        store, uid, oid = seeded
        store.seed_card(uid, "Brand voice", "Friendly", is_hidden=True, tag_ids=(T7,))

        ctx = ContextGatherer(store).gather(uid, oid, [])

        assert ctx.cards == ()

    def test_most_recently_updated_first(self, seeded):
        store, uid, oid = seeded
        store.seed_card(uid, "Older", "a")
        store.seed_card(uid, "Newer", "b")

        ctx = ContextGatherer(store).gather(uid, oid, [])

        assert [c.title for c in ctx.cards] == ["Newer", "Older"]

    def test_other_users_cards_ignored(self, seeded):
        store, uid, oid = seeded
        other = store.seed_user("other")
        store.seed_card(other, "Not mine", "x")

        ctx = ContextGatherer(store).gather(uid, oid, [])

        assert ctx.cards == ()

    def test_duplicate_candidate_rows_deduplicated(self, seeded):
        store, uid, oid = seeded
        cid = store.seed_card(uid, "Shared", "once", is_hidden=True, tag_ids=(T7,))
        row = dict(store.cards[cid])
        original = store.list_candidate_cards
        store.list_candidate_cards = lambda user_id, active: original(user_id, active) + [row]

        ctx = ContextGatherer(store).gather(uid, oid, [T7])

        assert ctx.cards == (CardEntry("Shared", "once"),)

    def test_filter_applied_even_if_store_over_returns(self, seeded):
        store, uid, oid = seeded
        store.list_candidate_cards = lambda user_id, active: [
            {"id": 1, "title": "Leak", "content": "x", "is_hidden": True,
             "tag_ids": [3], "updated_at": 1},
        ]

        ctx = ContextGatherer(store).gather(uid, oid, [T7])

        assert ctx.cards == ()


def test_bad_tag_selection_rejected(seeded):
    store, uid, oid = seeded
    with pytest.raises(ValidationError):
        ContextGatherer(store).gather(uid, oid, ["not-a-tag"])
