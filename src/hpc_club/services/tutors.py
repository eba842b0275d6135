"""Tutor transcripts kept per subject in the key-value store."""

import structlog

from hpc_club.ai.prompts import TUTOR_GREETING
from hpc_club.ai.tutor import TutorChat
from hpc_club.config import load_tutor_subjects
from hpc_club.exceptions import AIServiceError, NotFoundError, ValidationFailed
from hpc_club.models.tutor import Message, TutorSubject, TutorSummary
from hpc_club.storage.kv import TUTOR_HISTORY_KEY, KeyValueStore

logger = structlog.get_logger()

History = dict[str, list[Message]]


def greeting_message(subject: str) -> Message:
    return Message(role="model", text=TUTOR_GREETING.format(subject=subject))


class TutorService:
    """Per-user chat history with the subject tutors.

    Args:
        kv: Key-value store holding ``{subject: [message, ...]}``.
        chat: Tutor chat model; None means replies are unavailable.
        subjects: Subject catalog, defaults to config/tutors.yaml.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        chat: TutorChat | None = None,
        subjects: list[dict] | None = None,
    ):
        self.kv = kv
        self.chat = chat
        catalog = subjects if subjects is not None else load_tutor_subjects()
        self.subjects = [TutorSubject(**s) for s in catalog]

    def _check_subject(self, subject: str) -> None:
        if subject not in {s.id for s in self.subjects}:
            raise NotFoundError(f"Tutor desconhecido: {subject}")

    def load_history(self, user_id: str) -> History:
        raw = self.kv.for_user(user_id).get(TUTOR_HISTORY_KEY, {})
        return {
            subject: [Message(**m) for m in messages]
            for subject, messages in raw.items()
        }

    def _save_history(self, user_id: str, history: History) -> None:
        self.kv.for_user(user_id).set(TUTOR_HISTORY_KEY, {
            subject: [m.model_dump() for m in messages]
            for subject, messages in history.items()
        })

    def open(self, user_id: str, subject: str) -> list[Message]:
        """Transcript for ``subject``, seeded with the greeting when empty."""
        self._check_subject(subject)
        history = self.load_history(user_id)
        if not history.get(subject):
            history[subject] = [greeting_message(subject)]
            self._save_history(user_id, history)
        return history[subject]

    async def send(self, user_id: str, subject: str, text: str) -> Message:
        """Send a user message and persist the tutor's reply.

        If the model call fails, the user message is not kept and the error
        is re-raised.
        """
        text = text.strip()
        if not text:
            raise ValidationFailed("text", "Digite uma mensagem.")
        if self.chat is None:
            raise AIServiceError("Tutor indisponível no momento.")

        prior = self.open(user_id, subject)
        history = self.load_history(user_id)
        # Most recently messaged subject is kept last
        del history[subject]
        history[subject] = [*prior, Message(role="user", text=text)]
        self._save_history(user_id, history)

        try:
            reply_text = await self.chat.reply(subject, prior, text)
        except Exception:
            history[subject] = prior
            self._save_history(user_id, history)
            logger.warning("tutor_reply_failed", user_id=user_id, subject=subject)
            raise

        reply = Message(role="model", text=reply_text)
        history[subject].append(reply)
        self._save_history(user_id, history)
        logger.info("tutor_replied", user_id=user_id, subject=subject, turns=len(history[subject]))
        return reply

    def clear(self, user_id: str, subject: str) -> list[Message]:
        """Reset a subject back to the greeting."""
        self._check_subject(subject)
        history = self.load_history(user_id)
        history[subject] = [greeting_message(subject)]
        self._save_history(user_id, history)
        return history[subject]

    def active_subjects(self, user_id: str) -> list[str]:
        """Subjects where the user has sent at least one message."""
        return [
            subject for subject, messages in self.load_history(user_id).items()
            if any(m.role == "user" for m in messages)
        ]

    def summary(self, user_id: str) -> TutorSummary:
        """Active subjects and the latest message of the most recent exchange."""
        history = self.load_history(user_id)
        last_subject, last_text = None, None
        for subject, messages in history.items():
            if len(messages) > 1:
                last_subject, last_text = subject, messages[-1].text
        return TutorSummary(
            active_subjects=self.active_subjects(user_id),
            last_message_subject=last_subject,
            last_message=last_text,
        )
