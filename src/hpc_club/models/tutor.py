"""Tutor chat models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class Message(BaseModel):
    role: Literal["user", "model"]
    text: str


class TutorSubject(BaseModel):
    id: str
    description: str = ""


class ChatRequest(BaseModel):
    text: str = Field(min_length=1)


class TutorReply(BaseModel):
    subject: str
    reply: Message
    history_length: int


class TutorSummary(BaseModel):
    active_subjects: list[str] = Field(default_factory=list)
    last_message_subject: str | None = None
    last_message: str | None = None
    checked_at: datetime = Field(default_factory=datetime.now)
