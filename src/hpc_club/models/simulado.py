"""Simulated exam (simulado) models and scoring helpers."""

import math
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator

from hpc_club.models.planner import today_str


class ExamType(StrEnum):
    UFRGS = "UFRGS"
    ENEM = "ENEM"
    BOTH = "AMBOS"


class Difficulty(StrEnum):
    EASY = "Fácil"
    MEDIUM = "Médio"
    HARD = "Difícil"


class SimulationMode(StrEnum):
    QUICK = "Rápido"
    MARATHON = "Maratona"


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def percentage(correct: int, total: int) -> int:
    """Integer percentage; a zero total counts as 0%."""
    if total <= 0:
        return 0
    return round_half_up(100 * correct / total)


def performance_band(pct: float) -> str:
    if pct >= 80:
        return "high"
    if pct >= 60:
        return "medium"
    return "low"


class SimuladoArea(BaseModel):
    name: str
    correct: int = Field(ge=0)
    total: int = Field(ge=0)

    @model_validator(mode="after")
    def _correct_within_total(self) -> "SimuladoArea":
        if self.correct > self.total:
            raise ValueError(f"{self.name}: acertos ({self.correct}) maior que o total ({self.total})")
        return self

    @property
    def percentage(self) -> int:
        return percentage(self.correct, self.total)


class SimuladoResult(BaseModel):
    id: str
    date: str = Field(default_factory=today_str)
    exam_type: ExamType
    areas: list[SimuladoArea] = Field(default_factory=list)
    essay_score: int | None = Field(default=None, ge=0, le=1000)
    ai_analysis: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def percentage(self) -> int:
        """Overall hit rate across all areas."""
        correct = sum(a.correct for a in self.areas)
        total = sum(a.total for a in self.areas)
        return percentage(correct, total)


class SimuladoCreate(BaseModel):
    exam_type: ExamType = ExamType.ENEM
    correct_by_area: dict[str, int] = Field(default_factory=dict)
    essay_score: int | None = Field(default=None, ge=0, le=1000)
    analyze: bool = True


class GeneratedQuestion(BaseModel):
    id: str
    text: str
    options: list[str]
    correct_option_index: int = Field(ge=0)
    explanation: str = ""
    subject: str | None = None
    support_text: str | None = None
    image_description: str | None = None


class SimulationConfig(BaseModel):
    type: ExamType = ExamType.ENEM
    area: str
    difficulty: Difficulty = Difficulty.MEDIUM
    count: int = Field(default=5, ge=1, le=45)
    mode: SimulationMode = SimulationMode.QUICK


class QuestionVerdict(BaseModel):
    question_id: str
    chosen: int | None
    correct_option_index: int
    is_correct: bool


class ExamGrade(BaseModel):
    correct: int
    total: int
    percentage: int
    verdicts: list[QuestionVerdict] = Field(default_factory=list)


class Competencies(BaseModel):
    c1: int = Field(default=0, ge=0, le=200)
    c2: int = Field(default=0, ge=0, le=200)
    c3: int = Field(default=0, ge=0, le=200)
    c4: int = Field(default=0, ge=0, le=200)
    c5: int = Field(default=0, ge=0, le=200)


class EssayCorrection(BaseModel):
    """ENEM-style essay grade: five competencies of 0-200 each."""

    score: int = Field(ge=0, le=1000)
    competencies: Competencies = Field(default_factory=Competencies)
    comments: list[str] = Field(default_factory=list)
    improved_version: str = ""


class EssayRequest(BaseModel):
    topic: str
    text: str = Field(min_length=1)
