"""Planner models: tasks, study materials and AI study plans."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

DATE_FORMAT = "%d/%m/%Y"


class TaskScope(StrEnum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


class TaskPriority(StrEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return {"High": 3, "Medium": 2, "Low": 1}[self.value]


class PlannerTask(BaseModel):
    """A planner task row."""

    id: str
    title: str
    completed: bool = False
    scope: TaskScope = TaskScope.DAILY
    priority: TaskPriority = TaskPriority.MEDIUM
    created_at: datetime = Field(default_factory=datetime.now)
    date: str | None = None  # DD/MM/YYYY
    time: str | None = None  # HH:MM


class TaskCreate(BaseModel):
    title: str
    scope: TaskScope = TaskScope.DAILY
    priority: TaskPriority = TaskPriority.MEDIUM
    date: str | None = None
    time: str | None = None
    completed: bool = False


class TaskUpdate(BaseModel):
    title: str | None = None
    completed: bool | None = None
    priority: TaskPriority | None = None
    date: str | None = None
    time: str | None = None


class StudyMaterial(BaseModel):
    """A book or handout tracked by chapter."""

    id: str
    title: str
    subject: str
    current_chapter: int = 0
    total_chapters: int
    last_updated: datetime = Field(default_factory=datetime.now)

    @property
    def progress(self) -> int:
        if self.total_chapters <= 0:
            return 0
        return int(100 * self.current_chapter / self.total_chapters + 0.5)


class MaterialCreate(BaseModel):
    title: str
    subject: str = "Geral"
    total_chapters: int = Field(gt=0)


class DayPlan(BaseModel):
    day: str
    focus: str
    tasks: list[str] = Field(default_factory=list)
    tip: str = ""


class StudyPlanResponse(BaseModel):
    weekly_goal: str
    strategy_note: str
    schedule: list[DayPlan] = Field(default_factory=list)


class StudyPlanRequest(BaseModel):
    exam: str = "ENEM"
    subject: str = "Matemática"
    hours_per_day: float = Field(default=2, gt=0, le=16)


def today_str(now: datetime | None = None) -> str:
    """Today's date in the DD/MM/YYYY format used by planner rows."""
    return (now or datetime.now()).strftime(DATE_FORMAT)
