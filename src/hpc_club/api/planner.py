"""Planner routes: tasks, study materials and AI study plans."""

from fastapi import APIRouter, Depends

from hpc_club.api.deps import current_user, get_generator, get_materials, get_tasks
from hpc_club.ai.generator import ContentGenerator
from hpc_club.models.planner import (
    MaterialCreate,
    StudyPlanRequest,
    TaskCreate,
    TaskUpdate,
    today_str,
)
from hpc_club.models.user import User
from hpc_club.services.materials import MaterialService
from hpc_club.services.tasks import TaskService, day_progress, tasks_for_date

router = APIRouter(prefix="/api/planner")


@router.get("/tasks")
async def list_tasks(
    date: str | None = None,
    user: User = Depends(current_user),
    service: TaskService = Depends(get_tasks),
) -> dict:
    """All tasks (newest first), or one day's schedule with its progress."""
    tasks = service.fetch(user.id)
    if date is None:
        return {"tasks": [t.model_dump(mode="json") for t in tasks]}
    day = tasks_for_date(tasks, date)
    return {
        "date": date,
        "tasks": [t.model_dump(mode="json") for t in day],
        "progress": day_progress(day),
    }


@router.post("/tasks")
async def create_task(
    data: TaskCreate,
    user: User = Depends(current_user),
    service: TaskService = Depends(get_tasks),
) -> dict:
    return service.create(user.id, data).model_dump(mode="json")


@router.patch("/tasks/{task_id}")
async def update_task(
    task_id: str,
    changes: TaskUpdate,
    user: User = Depends(current_user),
    service: TaskService = Depends(get_tasks),
) -> dict:
    return service.update(user.id, task_id, changes).model_dump(mode="json")


@router.post("/tasks/{task_id}/toggle")
async def toggle_task(
    task_id: str,
    user: User = Depends(current_user),
    service: TaskService = Depends(get_tasks),
) -> dict:
    return service.toggle(user.id, task_id).model_dump(mode="json")


@router.delete("/tasks/{task_id}")
async def delete_task(
    task_id: str,
    user: User = Depends(current_user),
    service: TaskService = Depends(get_tasks),
) -> dict:
    service.delete(user.id, task_id)
    return {"deleted": task_id}


@router.post("/tasks/clear-completed")
async def clear_completed(
    date: str | None = None,
    user: User = Depends(current_user),
    service: TaskService = Depends(get_tasks),
) -> dict:
    return {"removed": service.clear_completed(user.id, date or today_str())}


@router.get("/materials")
async def list_materials(
    user: User = Depends(current_user),
    service: MaterialService = Depends(get_materials),
) -> list[dict]:
    return [
        {**m.model_dump(mode="json"), "progress": m.progress}
        for m in service.fetch(user.id)
    ]


@router.post("/materials")
async def create_material(
    data: MaterialCreate,
    user: User = Depends(current_user),
    service: MaterialService = Depends(get_materials),
) -> dict:
    return service.create(user.id, data).model_dump(mode="json")


@router.post("/materials/{material_id}/progress")
async def update_material_progress(
    material_id: str,
    delta: int = 1,
    user: User = Depends(current_user),
    service: MaterialService = Depends(get_materials),
) -> dict:
    material = service.update_progress(user.id, material_id, delta)
    return {**material.model_dump(mode="json"), "progress": material.progress}


@router.delete("/materials/{material_id}")
async def delete_material(
    material_id: str,
    user: User = Depends(current_user),
    service: MaterialService = Depends(get_materials),
) -> dict:
    service.delete(user.id, material_id)
    return {"deleted": material_id}


@router.post("/study-plan")
async def study_plan(
    request: StudyPlanRequest,
    user: User = Depends(current_user),
    generator: ContentGenerator = Depends(get_generator),
) -> dict:
    plan = await generator.generate_study_plan(request.exam, request.subject, request.hours_per_day)
    return plan.model_dump()
