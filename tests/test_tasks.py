"""Tests for planner tasks, study materials and the optimistic task panel."""

from unittest.mock import MagicMock

import pytest

from hpc_club.exceptions import NotFoundError, ValidationFailed
from hpc_club.models.planner import (
    MaterialCreate,
    PlannerTask,
    TaskCreate,
    TaskPriority,
    TaskUpdate,
    today_str,
)
from hpc_club.services.materials import MaterialService
from hpc_club.services.tasks import TaskService, day_progress, tasks_for_date
from hpc_club.sync import OptimisticList, TaskPanel

DAY = "10/03/2026"


@pytest.fixture
def tasks(store):
    return TaskService(store)


def _task(id, **kw):
    kw.setdefault("date", DAY)
    return PlannerTask(id=id, title=id, **kw)


class TestTaskOrdering:
    def test_timed_first_then_priority(self):
        items = [
            _task("low", priority=TaskPriority.LOW),
            _task("late", time="15:00"),
            _task("high", priority=TaskPriority.HIGH),
            _task("early", time="08:30"),
            _task("other-day", date="11/03/2026"),
        ]
        assert [t.id for t in tasks_for_date(items, DAY)] == ["early", "late", "high", "low"]

    def test_day_progress(self):
        assert day_progress([]) == 0
        assert day_progress([_task("a", completed=True), _task("b"), _task("c")]) == 33


class TestTaskService:
    def test_create_defaults_to_today(self, tasks):
        task = tasks.create("u1", TaskCreate(title="  Revisar  "))
        assert task.title == "Revisar"
        assert task.date == today_str()

    def test_blank_title_rejected(self, tasks):
        with pytest.raises(ValidationFailed):
            tasks.create("u1", TaskCreate(title="   "))

    def test_fetch_newest_first(self, tasks):
        tasks.store.insert("tasks", "u1", {"title": "old", "created_at": "2026-01-01T00:00:00"})
        tasks.store.insert("tasks", "u1", {"title": "new", "created_at": "2026-02-01T00:00:00"})
        assert [t.title for t in tasks.fetch("u1")] == ["new", "old"]

    def test_toggle_and_update(self, tasks):
        task = tasks.create("u1", TaskCreate(title="Ler", date=DAY))
        assert tasks.toggle("u1", task.id).completed is True
        assert tasks.toggle("u1", task.id).completed is False
        assert tasks.update("u1", task.id, TaskUpdate(time="09:00")).time == "09:00"

    def test_missing_task(self, tasks):
        with pytest.raises(NotFoundError):
            tasks.toggle("u1", "nope")
        with pytest.raises(NotFoundError):
            tasks.delete("u1", "nope")

    def test_other_user_cannot_touch(self, tasks):
        task = tasks.create("u1", TaskCreate(title="Ler"))
        with pytest.raises(NotFoundError):
            tasks.delete("u2", task.id)

    def test_clear_completed_only_that_day(self, tasks):
        done = tasks.create("u1", TaskCreate(title="a", date=DAY, completed=True))
        tasks.create("u1", TaskCreate(title="b", date=DAY))
        tasks.create("u1", TaskCreate(title="c", date="11/03/2026", completed=True))
        assert tasks.clear_completed("u1", DAY) == 1
        remaining = {t.id for t in tasks.fetch("u1")}
        assert done.id not in remaining
        assert len(remaining) == 2
        assert tasks.clear_completed("u1", DAY) == 0


class TestMaterials:
    def test_progress_is_clamped(self, kv):
        service = MaterialService(kv)
        material = service.create("u1", MaterialCreate(title="Física Básica", total_chapters=4))
        assert service.update_progress("u1", material.id, 10).current_chapter == 4
        assert service.update_progress("u1", material.id, -10).current_chapter == 0
        assert service.update_progress("u1", material.id, 1).progress == 25

    def test_newest_first_and_delete(self, kv):
        service = MaterialService(kv)
        first = service.create("u1", MaterialCreate(title="A", total_chapters=2))
        second = service.create("u1", MaterialCreate(title="B", total_chapters=2))
        assert [m.id for m in service.fetch("u1")] == [second.id, first.id]
        service.delete("u1", first.id)
        with pytest.raises(NotFoundError):
            service.delete("u1", first.id)

    def test_blank_title(self, kv):
        with pytest.raises(ValidationFailed):
            MaterialService(kv).create("u1", MaterialCreate(title=" ", total_chapters=1))


class TestOptimisticList:
    async def test_commit_success_keeps_change(self):
        items = OptimisticList([1, 2, 3])

        async def commit():
            return None

        assert await items.apply(lambda xs: xs[:-1], commit) is True
        assert items.items == [1, 2]

    async def test_commit_false_restores(self):
        items = OptimisticList([1, 2, 3])

        async def commit():
            return False

        assert await items.apply(lambda xs: [], commit) is False
        assert items.items == [1, 2, 3]

    async def test_commit_error_restores_and_raises(self):
        items = OptimisticList([{"done": False}])

        def mutate(xs):
            xs[0]["done"] = True
            return xs

        async def commit():
            raise RuntimeError("offline")

        with pytest.raises(RuntimeError):
            await items.apply(mutate, commit)
        assert items.items == [{"done": False}]


class TestTaskPanel:
    async def test_load_and_toggle(self, tasks):
        task = tasks.create("u1", TaskCreate(title="Ler", date=DAY))
        panel = TaskPanel(tasks, "u1")
        await panel.load()
        assert await panel.toggle(task.id) is True
        assert panel.tasks.items[0].completed is True
        assert tasks.fetch("u1")[0].completed is True

    async def test_failed_toggle_rolls_back(self):
        service = MagicMock()
        service.fetch.return_value = [_task("t1")]
        service.toggle.side_effect = NotFoundError("Tarefa não encontrada.")
        panel = TaskPanel(service, "u1")
        await panel.load()

        assert await panel.toggle("t1") is False
        assert panel.tasks.items[0].completed is False
        assert panel.notice == "Erro ao atualizar tarefa."

    async def test_failed_remove_rolls_back(self):
        service = MagicMock()
        service.fetch.return_value = [_task("t1"), _task("t2")]
        service.delete.side_effect = OSError("disk")
        panel = TaskPanel(service, "u1")
        await panel.load()

        assert await panel.remove("t1") is False
        assert [t.id for t in panel.tasks.items] == ["t1", "t2"]

    async def test_add_blank_title_is_rejected_locally(self):
        service = MagicMock()
        panel = TaskPanel(service, "u1")
        assert await panel.add(TaskCreate(title=" ")) is None
        service.create.assert_not_called()
        assert panel.notice == "O título da tarefa é obrigatório."

    async def test_clear_completed(self, tasks):
        tasks.create("u1", TaskCreate(title="a", date=DAY, completed=True))
        tasks.create("u1", TaskCreate(title="b", date=DAY))
        panel = TaskPanel(tasks, "u1")
        await panel.load()
        assert await panel.clear_completed(DAY) is True
        assert [t.title for t in panel.tasks.items] == ["b"]
