"""Study-time metrics and the dashboard overview."""

from datetime import datetime, timedelta

import structlog

from hpc_club.dashboard import greeting
from hpc_club.models.dashboard import (
    DashboardSummary,
    StudyHours,
    StudySession,
    StudySessionCreate,
)
from hpc_club.models.planner import today_str
from hpc_club.models.user import User
from hpc_club.services.error_list import ErrorListService
from hpc_club.services.flashcards import FlashcardService, due_queue, now_ms
from hpc_club.services.gamification import GamificationService, study_xp
from hpc_club.services.simulados import SimuladoService, global_average
from hpc_club.services.tasks import TaskService, tasks_for_date
from hpc_club.services.tutors import TutorService
from hpc_club.storage.kv import METRICS_KEY, KeyValueStore

logger = structlog.get_logger()

RECENT_ERRORS = 3


def study_hours(sessions: list[StudySession], now: datetime | None = None) -> StudyHours:
    """Hours studied today, this week (from Monday) and this calendar month."""
    now = now or datetime.now()
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_start = day_start - timedelta(days=day_start.weekday())
    month_start = day_start.replace(day=1)

    def total(since: datetime) -> float:
        minutes = sum(s.minutes for s in sessions if since <= s.logged_at <= now)
        return round(minutes / 60, 1)

    return StudyHours(today=total(day_start), week=total(week_start), month=total(month_start))


class AnalyticsService:
    """Aggregates the feature panels into the dashboard view."""

    def __init__(
        self,
        kv: KeyValueStore,
        tasks: TaskService,
        flashcards: FlashcardService,
        errors: ErrorListService,
        tutors: TutorService,
        simulados: SimuladoService,
    ):
        self.kv = kv
        self.tasks = tasks
        self.flashcards = flashcards
        self.errors = errors
        self.tutors = tutors
        self.simulados = simulados
        self.gamification = GamificationService(kv)

    def sessions(self, user_id: str) -> list[StudySession]:
        data = self.kv.for_user(user_id).get(METRICS_KEY, {})
        return [StudySession(**s) for s in data.get("sessions", [])]

    def log_study_session(
        self, user_id: str, data: StudySessionCreate, now: datetime | None = None
    ) -> StudyHours:
        session = StudySession(minutes=data.minutes, subject=data.subject, logged_at=now or datetime.now())
        sessions = [*self.sessions(user_id), session]
        self.kv.for_user(user_id).set(METRICS_KEY, {
            "sessions": [s.model_dump(mode="json") for s in sessions],
        })
        logger.info("study_session_logged", user_id=user_id, minutes=data.minutes, subject=data.subject)
        self.gamification.add_xp(user_id, study_xp(data.minutes), "Sessão de Foco")
        return study_hours(sessions, now)

    def hours(self, user_id: str, now: datetime | None = None) -> StudyHours:
        return study_hours(self.sessions(user_id), now)

    def summary(self, user: User, now: datetime | None = None) -> DashboardSummary:
        now = now or datetime.now()
        results = self.simulados.fetch(user.id)
        tutor_summary = self.tutors.summary(user.id)
        return DashboardSummary(
            greeting=greeting(now),
            user_name=user.name.split(" ")[0] if user.name else "",
            hours=self.hours(user.id, now),
            level=self.gamification.get_level(user.id),
            due_flashcards=len(due_queue(self.flashcards.fetch(user.id), now_ms(now))),
            recent_errors=self.errors.fetch(user.id)[:RECENT_ERRORS],
            active_tutors=len(tutor_summary.active_subjects),
            last_tutor_subject=tutor_summary.last_message_subject,
            last_tutor_message=tutor_summary.last_message,
            simulados_count=len(results),
            latest_simulado=results[0] if results else None,
            simulados_average=global_average(results),
            daily_tasks=tasks_for_date(self.tasks.fetch(user.id), today_str(now)),
        )
