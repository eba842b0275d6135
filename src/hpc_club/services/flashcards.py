"""Flashcards: CRUD over the ``flashcards`` table, SM-2 scheduling and folder tree."""

import time
from datetime import datetime

import structlog

from hpc_club.exceptions import NotFoundError, ValidationFailed
from hpc_club.models.error_entry import FlashcardDraft
from hpc_club.models.flashcard import (
    DEFAULT_EASE,
    MIN_EASE,
    DeckStats,
    Flashcard,
    FlashcardCreate,
    FlashcardUpdate,
    FolderNode,
    ReviewItem,
)
from hpc_club.models.simulado import percentage, round_half_up
from hpc_club.storage.tables import TableStore

logger = structlog.get_logger()

FLASHCARDS_TABLE = "flashcards"
# Placeholder card that keeps an empty folder alive
FOLDER_MARKER = "[[FOLDER_MARKER]]"
DAY_MS = 24 * 60 * 60 * 1000
MASTERED_INTERVAL = 21
REVIEW_PRIORITY = 80


def now_ms(now: datetime | None = None) -> int:
    if now is None:
        return int(time.time() * 1000)
    return int(now.timestamp() * 1000)


def is_marker(card: Flashcard) -> bool:
    return card.front == FOLDER_MARKER


def is_sub_path(path: list[str], prefix: list[str]) -> bool:
    return len(path) >= len(prefix) and path[:len(prefix)] == prefix


def schedule_review(card: Flashcard, quality: int, now: int | None = None) -> Flashcard:
    """Apply the SM-2 update for a graded review.

    Args:
        card: Card being reviewed (not modified).
        quality: Recall grade 0-5; 3 or more counts as remembered.
        now: Review time in epoch milliseconds.

    Returns:
        A copy of the card with interval, repetitions, ease and next_review updated.
    """
    if not 0 <= quality <= 5:
        raise ValidationFailed("quality", "A nota da revisão deve estar entre 0 e 5.")
    now = now_ms() if now is None else now

    interval, repetitions = card.interval, card.repetitions
    if quality >= 3:
        if repetitions == 0:
            interval = 1
        elif repetitions == 1:
            interval = 6
        else:
            interval = round_half_up(interval * card.ease)
        repetitions += 1
    else:
        repetitions = 0
        interval = 1

    miss = 5 - quality
    ease = max(MIN_EASE, card.ease + (0.1 - miss * (0.08 + miss * 0.02)))

    return card.model_copy(update={
        "interval": interval,
        "repetitions": repetitions,
        "ease": ease,
        "next_review": now + interval * DAY_MS,
    })


def due_queue(
    cards: list[Flashcard], now: int | None = None, folder: list[str] | None = None
) -> list[Flashcard]:
    """Cards due at ``now``, soonest first, optionally under a folder prefix."""
    now = now_ms() if now is None else now
    due = [c for c in cards if not is_marker(c) and c.next_review <= now]
    if folder:
        due = [c for c in due if is_sub_path(c.folder_path, folder)]
    return sorted(due, key=lambda c: c.next_review)


def smart_queue(cards: list[Flashcard], now: int | None = None) -> list[ReviewItem]:
    """Due cards as review items, highest priority first, then soonest due."""
    items = [
        ReviewItem(
            id=c.id,
            front=c.front,
            back=c.back,
            context=" / ".join(c.folder_path),
            priority=REVIEW_PRIORITY,
            due_at=c.next_review,
        )
        for c in due_queue(cards, now)
    ]
    return sorted(items, key=lambda i: (-i.priority, i.due_at))


def _new_node(name: str, path: list[str]) -> FolderNode:
    return FolderNode(name=name, full_path=path, stats=DeckStats(name=name, path=path))


def build_folder_tree(cards: list[Flashcard], now: int | None = None) -> FolderNode:
    """Nest cards by folder_path with per-folder total/due/progress stats.

    Stats on a folder include every card below it. Folder markers create
    the folder but are not counted.
    """
    now = now_ms() if now is None else now
    root = _new_node("Root", [])
    root.stats.name = "Total"
    mastered: dict[int, int] = {}

    def count(node: FolderNode, card: Flashcard) -> None:
        node.stats.total += 1
        if card.next_review <= now:
            node.stats.due += 1
        if card.interval > MASTERED_INTERVAL:
            mastered[id(node)] = mastered.get(id(node), 0) + 1

    nodes = [root]
    for card in cards:
        marker = is_marker(card)
        if not marker:
            count(root, card)
        node = root
        for i, name in enumerate(card.folder_path):
            if name not in node.children:
                node.children[name] = _new_node(name, card.folder_path[:i + 1])
                nodes.append(node.children[name])
            node = node.children[name]
            if not marker:
                count(node, card)
        if not marker:
            node.cards.append(card)

    for node in nodes:
        node.stats.progress = min(100, percentage(mastered.get(id(node), 0), node.stats.total))
    return root


class FlashcardService:
    def __init__(self, store: TableStore):
        self.store = store

    def fetch(self, user_id: str) -> list[Flashcard]:
        rows = self.store.select(FLASHCARDS_TABLE, user_id, order_by="created_at")
        return [Flashcard(**r) for r in rows]

    def get(self, user_id: str, card_id: str) -> Flashcard:
        row = self.store.get(FLASHCARDS_TABLE, user_id, card_id)
        if row is None:
            raise NotFoundError("Flashcard não encontrado.")
        return Flashcard(**row)

    def _insert(self, user_id: str, front: str, back: str, folder_path: list[str],
                next_review: int) -> Flashcard:
        row = self.store.insert(FLASHCARDS_TABLE, user_id, {
            "front": front,
            "back": back,
            "folder_path": [p.strip() for p in folder_path if p.strip()],
            "next_review": next_review,
            "interval": 0,
            "ease": DEFAULT_EASE,
            "repetitions": 0,
        })
        return Flashcard(**row)

    def create(self, user_id: str, data: FlashcardCreate) -> Flashcard:
        if not data.front.strip() or not data.back.strip():
            raise ValidationFailed("front", "Preencha frente e verso do card.")
        card = self._insert(user_id, data.front.strip(), data.back.strip(), data.folder_path, now_ms())
        logger.info("flashcard_created", user_id=user_id, card_id=card.id)
        return card

    def create_many(
        self, user_id: str, drafts: list[FlashcardDraft], folder_path: list[str]
    ) -> list[Flashcard]:
        created = [
            self._insert(user_id, d.front, d.back, folder_path, now_ms())
            for d in drafts
            if d.front.strip() and d.back.strip()
        ]
        logger.info("flashcards_batch_created", user_id=user_id, count=len(created))
        return created

    def create_folder(self, user_id: str, path: list[str]) -> Flashcard:
        """Create an empty folder by storing a marker card under it."""
        clean = [p.strip() for p in path if p.strip()]
        if not clean:
            raise ValidationFailed("path", "Informe o nome da pasta.")
        return self._insert(user_id, FOLDER_MARKER, FOLDER_MARKER, clean, 0)

    def update(self, user_id: str, card_id: str, changes: FlashcardUpdate) -> Flashcard:
        row = self.store.update(
            FLASHCARDS_TABLE, user_id, card_id, changes.model_dump(exclude_none=True)
        )
        if row is None:
            raise NotFoundError("Flashcard não encontrado.")
        return Flashcard(**row)

    def batch_update(self, user_id: str, cards: list[Flashcard]) -> int:
        """Persist full card states. Returns how many rows were written."""
        written = 0
        for card in cards:
            values = card.model_dump(mode="json", exclude={"id"})
            if self.store.update(FLASHCARDS_TABLE, user_id, card.id, values) is not None:
                written += 1
        return written

    def delete(self, user_id: str, card_id: str) -> None:
        if not self.store.delete(FLASHCARDS_TABLE, user_id, card_id):
            raise NotFoundError("Flashcard não encontrado.")

    def review(self, user_id: str, card_id: str, quality: int, now: int | None = None) -> Flashcard:
        card = schedule_review(self.get(user_id, card_id), quality, now)
        self.batch_update(user_id, [card])
        logger.info(
            "flashcard_reviewed",
            user_id=user_id,
            card_id=card_id,
            quality=quality,
            interval=card.interval,
        )
        return card

    def move_folder(self, user_id: str, source: list[str], target: list[str]) -> int:
        """Move folder ``source`` (with its subtree) inside ``target``.

        Moving ["A", "Sub"] to ["B"] turns ["A", "Sub", "X"] into ["B", "Sub", "X"].
        """
        if not source:
            raise ValidationFailed("source", "Selecione a pasta de origem.")
        if is_sub_path(target, source):
            raise ValidationFailed("target", "Não é possível mover uma pasta para dentro dela mesma.")
        moved = [
            c.model_copy(update={"folder_path": [*target, *c.folder_path[len(source) - 1:]]})
            for c in self.fetch(user_id)
            if is_sub_path(c.folder_path, source)
        ]
        count = self.batch_update(user_id, moved)
        logger.info("flashcard_folder_moved", user_id=user_id, source=source, target=target, count=count)
        return count

    def delete_folder(self, user_id: str, path: list[str]) -> int:
        if not path:
            raise ValidationFailed("path", "Selecione a pasta.")
        ids = {c.id for c in self.fetch(user_id) if is_sub_path(c.folder_path, path)}
        removed = self.store.delete_many(FLASHCARDS_TABLE, user_id, ids) if ids else 0
        logger.info("flashcard_folder_deleted", user_id=user_id, path=path, count=removed)
        return removed
