"""Error list kept in the key-value store, newest first."""

import uuid
from collections import Counter

import structlog

from hpc_club.ai.generator import ContentGenerator
from hpc_club.exceptions import AIServiceError, NotFoundError, ValidationFailed
from hpc_club.models.error_entry import (
    ErrorAnalysis,
    ErrorCreate,
    ErrorEntry,
    ErrorStats,
    FlashcardDraft,
)
from hpc_club.models.flashcard import Flashcard
from hpc_club.services.flashcards import FlashcardService
from hpc_club.storage.kv import ERROR_LIST_KEY, KeyValueStore

logger = structlog.get_logger()

ERRORS_FOLDER = "Erros"


def filter_errors(errors: list[ErrorEntry], query: str) -> list[ErrorEntry]:
    """Case-insensitive substring match on description or subject."""
    needle = query.strip().lower()
    if not needle:
        return list(errors)
    return [
        e for e in errors
        if needle in e.description.lower() or needle in e.subject.lower()
    ]


def error_stats(errors: list[ErrorEntry]) -> ErrorStats:
    if not errors:
        return ErrorStats()
    # ties go to whichever value appears first in the (newest-first) list
    cause, _ = Counter(e.cause.value for e in errors).most_common(1)[0]
    subject, subject_count = Counter(e.subject for e in errors).most_common(1)[0]
    return ErrorStats(
        total=len(errors),
        most_common_cause=cause,
        most_frequent_subject=subject,
        most_frequent_subject_count=subject_count,
    )


class ErrorListService:
    """CRUD and AI helpers for the user's error notebook.

    Args:
        kv: Key-value store holding the list.
        flashcards: Used to save the flashcards suggested for an error.
        generator: AI generator for photo analysis.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        flashcards: FlashcardService,
        generator: ContentGenerator | None = None,
    ):
        self.kv = kv
        self.flashcards = flashcards
        self.generator = generator

    def fetch(self, user_id: str, query: str = "") -> list[ErrorEntry]:
        errors = [ErrorEntry(**e) for e in self.kv.for_user(user_id).get(ERROR_LIST_KEY, [])]
        return filter_errors(errors, query) if query else errors

    def _save(self, user_id: str, errors: list[ErrorEntry]) -> None:
        self.kv.for_user(user_id).set(ERROR_LIST_KEY, [e.model_dump(mode="json") for e in errors])

    def add(self, user_id: str, data: ErrorCreate) -> ErrorEntry:
        description = data.description.strip()
        if not description:
            raise ValidationFailed("description", "Descreva o erro.")
        entry = ErrorEntry(
            id=str(uuid.uuid4()),
            subject=data.subject.strip() or "Geral",
            description=description,
            cause=data.cause,
        )
        self._save(user_id, [entry, *self.fetch(user_id)])
        logger.info("error_logged", user_id=user_id, subject=entry.subject, cause=entry.cause.value)
        return entry

    def delete(self, user_id: str, error_id: str) -> None:
        errors = self.fetch(user_id)
        kept = [e for e in errors if e.id != error_id]
        if len(kept) == len(errors):
            raise NotFoundError("Erro não encontrado.")
        self._save(user_id, kept)

    def stats(self, user_id: str) -> ErrorStats:
        return error_stats(self.fetch(user_id))

    async def analyze_image(self, image_base64: str) -> ErrorAnalysis:
        if self.generator is None:
            raise AIServiceError("Análise por IA indisponível.")
        if not image_base64.strip():
            raise ValidationFailed("image", "Envie uma imagem da questão.")
        return await self.generator.analyze_error_image(image_base64)

    def save_flashcards(
        self, user_id: str, subject: str, drafts: list[FlashcardDraft]
    ) -> list[Flashcard]:
        """Store suggested cards under the ["Erros", subject] folder."""
        folder = [ERRORS_FOLDER, subject.strip() or "Geral"]
        return self.flashcards.create_many(user_id, drafts, folder)
