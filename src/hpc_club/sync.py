"""Optimistic list state for the feature panels.

The local list changes first; the remote write runs after. If the write
fails the list is restored from a snapshot taken before the change.
"""

import asyncio
import copy
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

import structlog

from hpc_club.exceptions import HPCError
from hpc_club.models.planner import PlannerTask, TaskCreate, today_str
from hpc_club.services.tasks import TaskService

logger = structlog.get_logger()

T = TypeVar("T")


class OptimisticList(Generic[T]):
    def __init__(self, items: list[T] | None = None):
        self.items: list[T] = list(items or [])

    def replace(self, items: list[T]) -> None:
        self.items = list(items)

    async def apply(
        self,
        mutate: Callable[[list[T]], list[T]],
        commit: Callable[[], Awaitable[object]],
    ) -> bool:
        """Apply ``mutate`` locally, then ``commit`` remotely.

        Returns True when the commit succeeded. If ``commit`` raises or
        returns False, the prior items are restored and the error is re-raised
        (or False returned).
        """
        snapshot = copy.deepcopy(self.items)
        self.items = mutate(list(self.items))
        try:
            result = await commit()
        except Exception:
            self.items = snapshot
            raise
        if result is False:
            self.items = snapshot
            return False
        return True


class TaskPanel:
    """Headless planner panel: optimistic task edits with rollback.

    Failures never escape; they are reported through ``notice`` and the
    task list is left as it was before the failed action.

    Args:
        service: Task service backing the panel.
        user_id: Owner of the tasks.
    """

    def __init__(self, service: TaskService, user_id: str):
        self.service = service
        self.user_id = user_id
        self.tasks: OptimisticList[PlannerTask] = OptimisticList()
        self.notice: str | None = None

    def _fail(self, message: str, action: str) -> None:
        self.notice = message
        logger.warning("task_panel_action_failed", action=action, user_id=self.user_id)

    async def load(self) -> None:
        try:
            self.tasks.replace(await asyncio.to_thread(self.service.fetch, self.user_id))
            self.notice = None
        except (HPCError, OSError):
            self._fail("Erro ao carregar tarefas.", "load")

    async def add(self, data: TaskCreate) -> PlannerTask | None:
        if not data.title.strip():
            self._fail("O título da tarefa é obrigatório.", "add")
            return None
        try:
            created = await asyncio.to_thread(self.service.create, self.user_id, data)
        except (HPCError, OSError):
            self._fail("Erro ao criar tarefa.", "add")
            return None
        self.tasks.replace([created, *self.tasks.items])
        return created

    async def toggle(self, task_id: str) -> bool:
        def flip(items: list[PlannerTask]) -> list[PlannerTask]:
            return [
                t.model_copy(update={"completed": not t.completed}) if t.id == task_id else t
                for t in items
            ]

        try:
            return await self.tasks.apply(
                flip, lambda: asyncio.to_thread(self.service.toggle, self.user_id, task_id)
            )
        except (HPCError, OSError):
            self._fail("Erro ao atualizar tarefa.", "toggle")
            return False

    async def remove(self, task_id: str) -> bool:
        try:
            return await self.tasks.apply(
                lambda items: [t for t in items if t.id != task_id],
                lambda: asyncio.to_thread(self.service.delete, self.user_id, task_id),
            )
        except (HPCError, OSError):
            self._fail("Erro ao excluir tarefa.", "remove")
            return False

    async def clear_completed(self, date: str | None = None) -> bool:
        date = date or today_str()
        try:
            return await self.tasks.apply(
                lambda items: [t for t in items if not (t.completed and t.date == date)],
                lambda: asyncio.to_thread(self.service.clear_completed, self.user_id, date),
            )
        except (HPCError, OSError):
            self._fail("Erro ao limpar tarefas.", "clear_completed")
            return False
