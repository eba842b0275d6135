"""Dashboard summary and study-time models."""

from datetime import datetime

from pydantic import BaseModel, Field

from hpc_club.models.error_entry import ErrorEntry
from hpc_club.models.planner import PlannerTask
from hpc_club.models.simulado import SimuladoResult


class StudySession(BaseModel):
    minutes: float = Field(gt=0)
    subject: str = "Geral"
    logged_at: datetime = Field(default_factory=datetime.now)


class StudySessionCreate(BaseModel):
    minutes: float = Field(gt=0, le=24 * 60)
    subject: str = "Geral"


class StudyHours(BaseModel):
    today: float = 0.0
    week: float = 0.0
    month: float = 0.0


class UserLevel(BaseModel):
    """XP progress; ``current_xp`` counts toward ``next_level_xp``."""

    level: int = 1
    current_xp: int = 0
    next_level_xp: int = 1000
    total_xp: int = 0


class DashboardSummary(BaseModel):
    greeting: str
    user_name: str
    hours: StudyHours = Field(default_factory=StudyHours)
    level: UserLevel = Field(default_factory=UserLevel)
    due_flashcards: int = 0
    recent_errors: list[ErrorEntry] = Field(default_factory=list)
    active_tutors: int = 0
    last_tutor_subject: str | None = None
    last_tutor_message: str | None = None
    simulados_count: int = 0
    latest_simulado: SimuladoResult | None = None
    simulados_average: float = 0.0
    daily_tasks: list[PlannerTask] = Field(default_factory=list)
