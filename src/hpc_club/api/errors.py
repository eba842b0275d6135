"""Error list routes (Pro)."""

from fastapi import APIRouter, Body, Depends

from hpc_club.api.deps import get_error_list, require_pro
from hpc_club.models.error_entry import ErrorCreate, FlashcardDraft
from hpc_club.models.user import User
from hpc_club.services.error_list import ErrorListService

router = APIRouter(prefix="/api/errors")
pro_user = require_pro("Lista de Erros")


@router.get("")
async def list_errors(
    q: str = "",
    user: User = Depends(pro_user),
    service: ErrorListService = Depends(get_error_list),
) -> list[dict]:
    return [e.model_dump(mode="json") for e in service.fetch(user.id, q)]


@router.post("")
async def add_error(
    data: ErrorCreate,
    user: User = Depends(pro_user),
    service: ErrorListService = Depends(get_error_list),
) -> dict:
    return service.add(user.id, data).model_dump(mode="json")


@router.delete("/{error_id}")
async def delete_error(
    error_id: str,
    user: User = Depends(pro_user),
    service: ErrorListService = Depends(get_error_list),
) -> dict:
    service.delete(user.id, error_id)
    return {"deleted": error_id}


@router.get("/stats")
async def error_stats(
    user: User = Depends(pro_user),
    service: ErrorListService = Depends(get_error_list),
) -> dict:
    return service.stats(user.id).model_dump(mode="json")


@router.post("/analyze-image")
async def analyze_image(
    image: str = Body(..., embed=True),
    user: User = Depends(pro_user),
    service: ErrorListService = Depends(get_error_list),
) -> dict:
    """AI reading of a photographed question (base64, data URL accepted)."""
    analysis = await service.analyze_image(image)
    return analysis.model_dump(mode="json")


@router.post("/flashcards")
async def save_suggested_flashcards(
    subject: str = Body(...),
    flashcards: list[FlashcardDraft] = Body(...),
    user: User = Depends(pro_user),
    service: ErrorListService = Depends(get_error_list),
) -> list[dict]:
    cards = service.save_flashcards(user.id, subject, flashcards)
    return [c.model_dump(mode="json") for c in cards]
