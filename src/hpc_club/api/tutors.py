"""Tutor routes (Pro): REST chat plus an interactive WebSocket."""

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from hpc_club.api.deps import get_identity, get_tutors, require_pro
from hpc_club.exceptions import HPCError, SubscriptionRequired
from hpc_club.identity.service import IdentityService
from hpc_club.models.tutor import ChatRequest, TutorReply
from hpc_club.models.user import User
from hpc_club.services.tutors import TutorService

logger = structlog.get_logger()
router = APIRouter(prefix="/api/tutors")
FEATURE = "Tutores IA"
pro_user = require_pro(FEATURE)


@router.get("")
async def list_subjects(
    user: User = Depends(pro_user),
    service: TutorService = Depends(get_tutors),
) -> dict:
    return {
        "subjects": [s.model_dump() for s in service.subjects],
        "active": service.active_subjects(user.id),
    }


@router.get("/{subject}/history")
async def get_history(
    subject: str,
    user: User = Depends(pro_user),
    service: TutorService = Depends(get_tutors),
) -> list[dict]:
    return [m.model_dump() for m in service.open(user.id, subject)]


@router.post("/{subject}/messages")
async def send_message(
    subject: str,
    request: ChatRequest,
    user: User = Depends(pro_user),
    service: TutorService = Depends(get_tutors),
) -> dict:
    reply = await service.send(user.id, subject, request.text)
    return TutorReply(
        subject=subject,
        reply=reply,
        history_length=len(service.open(user.id, subject)),
    ).model_dump()


@router.delete("/{subject}/history")
async def clear_history(
    subject: str,
    user: User = Depends(pro_user),
    service: TutorService = Depends(get_tutors),
) -> list[dict]:
    return [m.model_dump() for m in service.clear(user.id, subject)]


@router.websocket("/ws")
async def tutor_websocket(
    websocket: WebSocket,
    token: str = "",
    identity: IdentityService = Depends(get_identity),
    service: TutorService = Depends(get_tutors),
) -> None:
    """Interactive tutor chat.

    Client messages: ``{"type": "open", "subject"}``, ``{"type": "message",
    "subject", "text"}`` and ``{"type": "clear", "subject"}``. Every reply
    carries a ``type`` of ``history``, ``reply`` or ``error``.
    """
    await websocket.accept()
    try:
        user = await identity.get_user(token)
        if not user.is_pro:
            raise SubscriptionRequired(FEATURE)
    except HPCError as e:
        await websocket.send_json({"type": "error", "message": e.message})
        await websocket.close(code=1008)
        return

    try:
        while True:
            data = await websocket.receive_json()
            msg_type = data.get("type", "")
            subject = data.get("subject", "")
            try:
                if msg_type == "open":
                    history = service.open(user.id, subject)
                    await websocket.send_json({
                        "type": "history",
                        "subject": subject,
                        "messages": [m.model_dump() for m in history],
                    })
                elif msg_type == "message":
                    reply = await service.send(user.id, subject, data.get("text", ""))
                    await websocket.send_json({
                        "type": "reply",
                        "subject": subject,
                        "message": reply.model_dump(),
                    })
                elif msg_type == "clear":
                    history = service.clear(user.id, subject)
                    await websocket.send_json({
                        "type": "history",
                        "subject": subject,
                        "messages": [m.model_dump() for m in history],
                    })
                else:
                    await websocket.send_json({"type": "error", "message": f"Tipo desconhecido: {msg_type}"})
            except HPCError as e:
                await websocket.send_json({"type": "error", "subject": subject, "message": e.message})
    except WebSocketDisconnect:
        logger.info("tutor_ws_disconnected", user_id=user.id)
    except Exception:
        logger.exception("tutor_ws_error", user_id=user.id)
