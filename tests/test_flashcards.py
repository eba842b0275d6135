"""Tests for SM-2 scheduling, review queues, folder tree and flashcard storage."""

import pytest

from hpc_club.exceptions import NotFoundError, ValidationFailed
from hpc_club.models.error_entry import FlashcardDraft
from hpc_club.models.flashcard import Flashcard, FlashcardCreate, FlashcardUpdate
from hpc_club.services.flashcards import (
    DAY_MS,
    FOLDER_MARKER,
    FlashcardService,
    build_folder_tree,
    due_queue,
    schedule_review,
    smart_queue,
)

NOW = 1_700_000_000_000


@pytest.fixture
def cards(store):
    return FlashcardService(store)


def _card(id, path=(), next_review=0, interval=0, front=None):
    return Flashcard(
        id=id, front=front or f"Q{id}", back="A", folder_path=list(path),
        next_review=next_review, interval=interval,
    )


class TestScheduleReview:
    def test_first_success(self):
        card = schedule_review(_card("1"), 5, now=NOW)
        assert card.interval == 1
        assert card.repetitions == 1
        assert card.ease == pytest.approx(2.6)
        assert card.next_review == NOW + DAY_MS

    def test_second_success_is_six_days(self):
        card = Flashcard(id="1", front="Q", back="A", interval=1, repetitions=1)
        assert schedule_review(card, 4, now=NOW).interval == 6

    def test_later_success_multiplies_by_ease(self):
        card = Flashcard(id="1", front="Q", back="A", interval=6, repetitions=2, ease=2.5)
        reviewed = schedule_review(card, 4, now=NOW)
        assert reviewed.interval == 15
        assert reviewed.repetitions == 3
        assert reviewed.ease == pytest.approx(2.5)

    def test_hard_recall_lowers_ease(self):
        card = schedule_review(_card("1"), 3, now=NOW)
        assert card.ease == pytest.approx(2.36)

    def test_failure_resets(self):
        card = Flashcard(id="1", front="Q", back="A", interval=15, repetitions=3, ease=2.5)
        reviewed = schedule_review(card, 0, now=NOW)
        assert reviewed.interval == 1
        assert reviewed.repetitions == 0
        assert reviewed.ease == pytest.approx(1.7)

    def test_ease_floor(self):
        card = Flashcard(id="1", front="Q", back="A", ease=1.35)
        assert schedule_review(card, 0, now=NOW).ease == pytest.approx(1.3)

    def test_original_card_untouched(self):
        card = _card("1")
        schedule_review(card, 5, now=NOW)
        assert card.repetitions == 0

    @pytest.mark.parametrize("quality", [-1, 6])
    def test_quality_out_of_range(self, quality):
        with pytest.raises(ValidationFailed):
            schedule_review(_card("1"), quality, now=NOW)


class TestQueues:
    def test_due_queue_filters_and_sorts(self):
        deck = [
            _card("later", next_review=NOW - 10),
            _card("future", next_review=NOW + 10),
            _card("first", next_review=NOW - 100),
            _card("marker", front=FOLDER_MARKER),
        ]
        assert [c.id for c in due_queue(deck, NOW)] == ["first", "later"]

    def test_due_queue_folder_prefix(self):
        deck = [_card("a", ["Física", "Óptica"]), _card("b", ["Química"]), _card("c", ["Físicas"])]
        assert [c.id for c in due_queue(deck, NOW, ["Física"])] == ["a"]

    def test_smart_queue_items(self):
        (item,) = smart_queue([_card("a", ["Física", "Óptica"])], NOW)
        assert item.context == "Física / Óptica"
        assert item.priority == 80
        assert item.type == "flashcard"


class TestFolderTree:
    def test_stats_roll_up(self):
        deck = [
            _card("1", ["Física", "Óptica"], next_review=NOW - 1, interval=30),
            _card("2", ["Física"], next_review=NOW + DAY_MS, interval=2),
            _card("3", [], next_review=NOW - 1),
            _card("m", ["Química"], front=FOLDER_MARKER),
        ]
        root = build_folder_tree(deck, NOW)
        assert root.stats.name == "Total"
        assert (root.stats.total, root.stats.due) == (3, 2)
        assert root.stats.progress == 33
        fisica = root.children["Física"]
        assert (fisica.stats.total, fisica.stats.due, fisica.stats.progress) == (2, 1, 50)
        assert fisica.children["Óptica"].full_path == ["Física", "Óptica"]
        assert [c.id for c in fisica.cards] == ["2"]
        assert [c.id for c in root.cards] == ["3"]

    def test_marker_keeps_empty_folder(self):
        root = build_folder_tree([_card("m", ["Química"], front=FOLDER_MARKER)], NOW)
        quimica = root.children["Química"]
        assert quimica.stats.total == 0
        assert quimica.stats.progress == 0
        assert quimica.cards == []


class TestFlashcardService:
    def test_create_is_due_immediately(self, cards):
        card = cards.create("u1", FlashcardCreate(front="Q", back="A", folder_path=[" Física ", ""]))
        assert card.folder_path == ["Física"]
        assert due_queue(cards.fetch("u1"))[0].id == card.id

    def test_create_folder_marker(self, cards):
        marker = cards.create_folder("u1", ["Química", "Orgânica"])
        assert marker.front == FOLDER_MARKER
        tree = build_folder_tree(cards.fetch("u1"))
        assert "Orgânica" in tree.children["Química"].children
        with pytest.raises(ValidationFailed):
            cards.create_folder("u1", ["  "])

    def test_create_many_skips_blank(self, cards):
        created = cards.create_many("u1", [
            FlashcardDraft(front="Q1", back="A1"),
            FlashcardDraft(front=" ", back="A2"),
        ], ["Erros", "Física"])
        assert len(created) == 1
        assert created[0].folder_path == ["Erros", "Física"]

    def test_review_persists(self, cards):
        card = cards.create("u1", FlashcardCreate(front="Q", back="A"))
        cards.review("u1", card.id, 5, now=NOW)
        stored = cards.get("u1", card.id)
        assert stored.repetitions == 1
        assert stored.next_review == NOW + DAY_MS

    def test_update_and_delete(self, cards):
        card = cards.create("u1", FlashcardCreate(front="Q", back="A"))
        assert cards.update("u1", card.id, FlashcardUpdate(back="B")).back == "B"
        cards.delete("u1", card.id)
        with pytest.raises(NotFoundError):
            cards.get("u1", card.id)
        with pytest.raises(NotFoundError):
            cards.update("u1", card.id, FlashcardUpdate(back="C"))

    def test_batch_update_counts_existing(self, cards):
        card = cards.create("u1", FlashcardCreate(front="Q", back="A"))
        ghost = _card("ghost")
        assert cards.batch_update("u1", [card.model_copy(update={"interval": 3}), ghost]) == 1
        assert cards.get("u1", card.id).interval == 3

    def test_move_folder_keeps_subtree(self, cards):
        cards.create("u1", FlashcardCreate(front="Q1", back="A", folder_path=["A", "Sub", "X"]))
        cards.create("u1", FlashcardCreate(front="Q2", back="A", folder_path=["A", "Sub"]))
        cards.create("u1", FlashcardCreate(front="Q3", back="A", folder_path=["A", "Outra"]))
        assert cards.move_folder("u1", ["A", "Sub"], ["B"]) == 2
        paths = sorted(tuple(c.folder_path) for c in cards.fetch("u1"))
        assert paths == [("A", "Outra"), ("B", "Sub"), ("B", "Sub", "X")]

    def test_move_folder_into_itself(self, cards):
        with pytest.raises(ValidationFailed):
            cards.move_folder("u1", ["A"], ["A", "Sub"])

    def test_delete_folder(self, cards):
        cards.create("u1", FlashcardCreate(front="Q1", back="A", folder_path=["A", "Sub"]))
        cards.create_folder("u1", ["A", "Vazia"])
        cards.create("u1", FlashcardCreate(front="Q2", back="A", folder_path=["B"]))
        assert cards.delete_folder("u1", ["A"]) == 2
        assert [c.front for c in cards.fetch("u1")] == ["Q2"]
