"""Error list models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from hpc_club.models.planner import today_str


class ErrorCause(StrEnum):
    """Why a question was missed."""

    CONTENT = "Conteúdo"
    ATTENTION = "Atenção"
    INTERPRETATION = "Interpretação"
    TIME = "Tempo"

    @classmethod
    def coerce(cls, value: str) -> "ErrorCause":
        """Map loose AI output onto a known cause, defaulting to content."""
        text = (value or "").strip().lower()
        for cause in cls:
            if cause.value.lower() in text:
                return cause
        return cls.CONTENT


class ErrorEntry(BaseModel):
    id: str
    subject: str
    description: str
    cause: ErrorCause = ErrorCause.CONTENT
    date: str = Field(default_factory=today_str)


class ErrorCreate(BaseModel):
    subject: str = "Geral"
    description: str
    cause: ErrorCause = ErrorCause.CONTENT


class FlashcardDraft(BaseModel):
    front: str
    back: str


class ErrorAnalysis(BaseModel):
    """AI reading of a photographed question."""

    description: str
    subject: str
    cause: ErrorCause
    flashcards: list[FlashcardDraft] = Field(default_factory=list)


class ErrorStats(BaseModel):
    total: int = 0
    most_common_cause: str = "-"
    most_frequent_subject: str | None = None
    most_frequent_subject_count: int = 0
    generated_at: datetime = Field(default_factory=datetime.now)
