"""Notes routes: tree CRUD, workspace state and AI helpers."""

from fastapi import APIRouter, Depends

from hpc_club.api.deps import current_user, get_notes
from hpc_club.models.notes import (
    NoteCreate,
    NoteGenerateRequest,
    NotesWorkspace,
    NoteUpdate,
    RefineRequest,
)
from hpc_club.models.user import User
from hpc_club.services.notes import NoteService

router = APIRouter(prefix="/api/notes")


@router.get("")
async def list_notes(
    user: User = Depends(current_user),
    service: NoteService = Depends(get_notes),
) -> list[dict]:
    return [n.model_dump(mode="json") for n in service.fetch(user.id)]


@router.post("")
async def create_note(
    data: NoteCreate,
    user: User = Depends(current_user),
    service: NoteService = Depends(get_notes),
) -> dict:
    return service.create(user.id, data).model_dump(mode="json")


@router.get("/workspace")
async def get_workspace(
    user: User = Depends(current_user),
    service: NoteService = Depends(get_notes),
) -> dict:
    return service.get_workspace(user.id).model_dump()


@router.put("/workspace")
async def save_workspace(
    workspace: NotesWorkspace,
    user: User = Depends(current_user),
    service: NoteService = Depends(get_notes),
) -> dict:
    return service.save_workspace(user.id, workspace).model_dump()


@router.post("/refine")
async def refine_text(
    request: RefineRequest,
    user: User = Depends(current_user),
    service: NoteService = Depends(get_notes),
) -> dict:
    return {"text": await service.refine_text(request.text, request.instruction)}


@router.post("/generate")
async def generate_note(
    request: NoteGenerateRequest,
    user: User = Depends(current_user),
    service: NoteService = Depends(get_notes),
) -> dict:
    return (await service.generate(user.id, request)).model_dump(mode="json")


@router.get("/{note_id}")
async def get_note(
    note_id: str,
    user: User = Depends(current_user),
    service: NoteService = Depends(get_notes),
) -> dict:
    return service.get(user.id, note_id).model_dump(mode="json")


@router.patch("/{note_id}")
async def update_note(
    note_id: str,
    changes: NoteUpdate,
    user: User = Depends(current_user),
    service: NoteService = Depends(get_notes),
) -> dict:
    return service.update(user.id, note_id, changes).model_dump(mode="json")


@router.delete("/{note_id}")
async def delete_note(
    note_id: str,
    user: User = Depends(current_user),
    service: NoteService = Depends(get_notes),
) -> dict:
    return {"deleted": service.delete(user.id, note_id)}


@router.post("/{note_id}/insights")
async def note_insights(
    note_id: str,
    user: User = Depends(current_user),
    service: NoteService = Depends(get_notes),
) -> dict:
    return (await service.analyze(user.id, note_id)).model_dump()


@router.post("/{note_id}/flashcards")
async def note_flashcards(
    note_id: str,
    user: User = Depends(current_user),
    service: NoteService = Depends(get_notes),
) -> list[dict]:
    return [d.model_dump() for d in await service.suggest_flashcards(user.id, note_id)]
