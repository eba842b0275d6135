"""Flashcard models."""

from pydantic import BaseModel, Field

DEFAULT_EASE = 2.5
MIN_EASE = 1.3


class Flashcard(BaseModel):
    id: str
    front: str
    back: str
    folder_path: list[str] = Field(default_factory=list)
    next_review: int = 0  # epoch milliseconds
    interval: int = 0  # days
    ease: float = DEFAULT_EASE
    repetitions: int = 0


class FlashcardCreate(BaseModel):
    front: str = Field(min_length=1)
    back: str = Field(min_length=1)
    folder_path: list[str] = Field(default_factory=list)


class FlashcardUpdate(BaseModel):
    front: str | None = None
    back: str | None = None
    folder_path: list[str] | None = None


class ReviewGrade(BaseModel):
    quality: int = Field(ge=0, le=5)


class FolderMove(BaseModel):
    source: list[str] = Field(min_length=1)
    target: list[str] = Field(default_factory=list)


class DeckStats(BaseModel):
    name: str
    path: list[str] = Field(default_factory=list)
    total: int = 0
    due: int = 0
    progress: int = 0  # % of cards mastered (interval over 21 days)


class FolderNode(BaseModel):
    name: str
    full_path: list[str] = Field(default_factory=list)
    stats: DeckStats
    children: dict[str, "FolderNode"] = Field(default_factory=dict)
    cards: list[Flashcard] = Field(default_factory=list)


class ReviewItem(BaseModel):
    """An entry in the smart review queue."""

    id: str
    type: str = "flashcard"
    front: str
    back: str
    context: str = ""
    priority: int = 80
    due_at: int = 0
