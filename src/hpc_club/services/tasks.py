"""Planner tasks backed by the ``tasks`` table."""

import structlog

from hpc_club.exceptions import NotFoundError, ValidationFailed
from hpc_club.models.planner import PlannerTask, TaskCreate, TaskUpdate, today_str
from hpc_club.models.simulado import percentage
from hpc_club.storage.tables import TableStore

logger = structlog.get_logger()

TASKS_TABLE = "tasks"


def tasks_for_date(tasks: list[PlannerTask], date: str) -> list[PlannerTask]:
    """Tasks of one day: timed tasks by time, then the rest by priority."""
    day = [t for t in tasks if t.date == date]
    timed = sorted((t for t in day if t.time), key=lambda t: t.time)
    untimed = sorted((t for t in day if not t.time), key=lambda t: -t.priority.rank)
    return timed + untimed


def day_progress(tasks: list[PlannerTask]) -> int:
    """Percent of tasks completed, 0 for an empty day."""
    return percentage(sum(1 for t in tasks if t.completed), len(tasks))


class TaskService:
    def __init__(self, store: TableStore):
        self.store = store

    def fetch(self, user_id: str) -> list[PlannerTask]:
        rows = self.store.select(TASKS_TABLE, user_id, order_by="created_at", descending=True)
        return [PlannerTask(**r) for r in rows]

    def create(self, user_id: str, data: TaskCreate) -> PlannerTask:
        title = data.title.strip()
        if not title:
            raise ValidationFailed("title", "O título da tarefa é obrigatório.")
        values = data.model_dump(mode="json")
        values["title"] = title
        values["date"] = data.date or today_str()
        row = self.store.insert(TASKS_TABLE, user_id, values)
        logger.info("task_created", user_id=user_id, task_id=row["id"], scope=data.scope.value)
        return PlannerTask(**row)

    def update(self, user_id: str, task_id: str, changes: TaskUpdate) -> PlannerTask:
        values = changes.model_dump(mode="json", exclude_none=True)
        if "title" in values and not values["title"].strip():
            raise ValidationFailed("title", "O título da tarefa é obrigatório.")
        row = self.store.update(TASKS_TABLE, user_id, task_id, values)
        if row is None:
            raise NotFoundError("Tarefa não encontrada.")
        return PlannerTask(**row)

    def toggle(self, user_id: str, task_id: str) -> PlannerTask:
        row = self.store.get(TASKS_TABLE, user_id, task_id)
        if row is None:
            raise NotFoundError("Tarefa não encontrada.")
        return self.update(user_id, task_id, TaskUpdate(completed=not row.get("completed", False)))

    def delete(self, user_id: str, task_id: str) -> None:
        if not self.store.delete(TASKS_TABLE, user_id, task_id):
            raise NotFoundError("Tarefa não encontrada.")

    def clear_completed(self, user_id: str, date: str) -> int:
        """Delete completed tasks of ``date``. Returns how many were removed."""
        ids = {
            r["id"] for r in self.store.select(
                TASKS_TABLE, user_id, order_by=None,
                where=lambda r: r.get("completed") and r.get("date") == date,
            )
        }
        if not ids:
            return 0
        removed = self.store.delete_many(TASKS_TABLE, user_id, ids)
        logger.info("completed_tasks_cleared", user_id=user_id, date=date, count=removed)
        return removed
