"""Per-subject tutor chat on top of the generative client."""

import structlog

from hpc_club.ai.client import GenerativeClient
from hpc_club.ai.prompts import TUTOR_SYSTEM_PROMPT
from hpc_club.models.tutor import Message

logger = structlog.get_logger()

_ROLE_MAP = {"user": "user", "model": "assistant"}


def build_chat_messages(subject: str, history: list[Message], text: str) -> list[dict]:
    """System instruction, prior transcript, then the new user turn."""
    messages = [{"role": "system", "content": TUTOR_SYSTEM_PROMPT.format(subject=subject)}]
    messages.extend(
        {"role": _ROLE_MAP[m.role], "content": m.text} for m in history
    )
    messages.append({"role": "user", "content": text})
    return messages


class TutorChat:
    """Stateless chat: the caller owns and persists the transcript."""

    def __init__(self, client: GenerativeClient):
        self.client = client

    async def reply(self, subject: str, history: list[Message], text: str) -> str:
        messages = build_chat_messages(subject, history, text)
        logger.debug("tutor_request", subject=subject, turns=len(history))
        return await self.client.complete(messages, temperature=0.7)
