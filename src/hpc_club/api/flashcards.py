"""Flashcard routes (Pro): cards, folders, reviews and the review queue."""

from fastapi import APIRouter, Body, Depends, Query

from hpc_club.api.deps import get_flashcards, require_pro
from hpc_club.models.flashcard import (
    Flashcard,
    FlashcardCreate,
    FlashcardUpdate,
    FolderMove,
    ReviewGrade,
)
from hpc_club.models.user import User
from hpc_club.services.flashcards import (
    FlashcardService,
    build_folder_tree,
    due_queue,
    smart_queue,
)

router = APIRouter(prefix="/api/flashcards")
pro_user = require_pro("Flashcards")


@router.get("")
async def list_flashcards(
    user: User = Depends(pro_user),
    service: FlashcardService = Depends(get_flashcards),
) -> list[dict]:
    return [c.model_dump() for c in service.fetch(user.id)]


@router.post("")
async def create_flashcard(
    data: FlashcardCreate,
    user: User = Depends(pro_user),
    service: FlashcardService = Depends(get_flashcards),
) -> dict:
    return service.create(user.id, data).model_dump()


@router.put("/batch")
async def batch_update(
    cards: list[Flashcard],
    user: User = Depends(pro_user),
    service: FlashcardService = Depends(get_flashcards),
) -> dict:
    return {"updated": service.batch_update(user.id, cards)}


@router.get("/tree")
async def folder_tree(
    user: User = Depends(pro_user),
    service: FlashcardService = Depends(get_flashcards),
) -> dict:
    return build_folder_tree(service.fetch(user.id)).model_dump()


@router.get("/due")
async def due_cards(
    folder: list[str] = Query(default=[]),
    user: User = Depends(pro_user),
    service: FlashcardService = Depends(get_flashcards),
) -> list[dict]:
    return [c.model_dump() for c in due_queue(service.fetch(user.id), folder=folder or None)]


@router.get("/review-queue")
async def review_queue(
    user: User = Depends(pro_user),
    service: FlashcardService = Depends(get_flashcards),
) -> list[dict]:
    return [i.model_dump() for i in smart_queue(service.fetch(user.id))]


@router.post("/folders")
async def create_folder(
    path: list[str] = Body(..., embed=True),
    user: User = Depends(pro_user),
    service: FlashcardService = Depends(get_flashcards),
) -> dict:
    service.create_folder(user.id, path)
    return {"path": path}


@router.post("/folders/move")
async def move_folder(
    move: FolderMove,
    user: User = Depends(pro_user),
    service: FlashcardService = Depends(get_flashcards),
) -> dict:
    return {"moved": service.move_folder(user.id, move.source, move.target)}


@router.post("/folders/delete")
async def delete_folder(
    path: list[str] = Body(..., embed=True),
    user: User = Depends(pro_user),
    service: FlashcardService = Depends(get_flashcards),
) -> dict:
    return {"deleted": service.delete_folder(user.id, path)}


@router.patch("/{card_id}")
async def update_flashcard(
    card_id: str,
    changes: FlashcardUpdate,
    user: User = Depends(pro_user),
    service: FlashcardService = Depends(get_flashcards),
) -> dict:
    return service.update(user.id, card_id, changes).model_dump()


@router.delete("/{card_id}")
async def delete_flashcard(
    card_id: str,
    user: User = Depends(pro_user),
    service: FlashcardService = Depends(get_flashcards),
) -> dict:
    service.delete(user.id, card_id)
    return {"deleted": card_id}


@router.post("/{card_id}/review")
async def review_flashcard(
    card_id: str,
    grade: ReviewGrade,
    user: User = Depends(pro_user),
    service: FlashcardService = Depends(get_flashcards),
) -> dict:
    return service.review(user.id, card_id, grade.quality).model_dump()
