"""Health, session bootstrap and dashboard tab routes."""

import structlog
from fastapi import APIRouter, Depends

from hpc_club.api.deps import bearer_token, current_user, get_identity
from hpc_club.config import Settings, get_settings
from hpc_club.dashboard import ViewState, open_tab, resolve_view, tabs_for
from hpc_club.identity.bootstrap import SessionBootstrapper
from hpc_club.identity.service import IdentityService
from hpc_club.models.user import User

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/session")
async def get_session(
    requested: ViewState | None = None,
    token: str | None = Depends(bearer_token),
    identity: IdentityService = Depends(get_identity),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Resolve the initial view; never fails, falls back to the landing page."""
    bootstrapper = SessionBootstrapper(
        identity,
        check_timeout=settings.session_check_timeout_seconds,
        safety_timeout=settings.session_safety_timeout_seconds,
    )
    result = await bootstrapper.bootstrap(token)
    if result.user is None and requested is not None:
        result.view = resolve_view(None, requested)
    return result.model_dump(mode="json")


@router.get("/tabs")
async def list_tabs(user: User = Depends(current_user)) -> list[dict]:
    return tabs_for(user)


@router.get("/tabs/{tab_id}")
async def get_tab(tab_id: str, user: User = Depends(current_user)) -> dict:
    """Open a dashboard tab; Pro-only tabs answer 402 on the free tier."""
    return open_tab(user, tab_id).model_dump()
