"""Registration, login, logout and social-login routes."""

import secrets

import structlog
from fastapi import APIRouter, Body, Depends

from hpc_club.api.deps import bearer_token, current_user, get_identity
from hpc_club.config import Settings, get_settings
from hpc_club.identity.oauth import authorize_url, exchange_code
from hpc_club.identity.service import IdentityService
from hpc_club.models.auth import LoginForm, RegisterForm, TokenResponse
from hpc_club.models.user import User

logger = structlog.get_logger()
router = APIRouter(prefix="/api/auth")


def _token_response(user: User, token: str) -> dict:
    return {
        **TokenResponse(access_token=token, user_id=user.id).model_dump(),
        "user": user.model_dump(mode="json"),
    }


@router.post("/register")
async def register(
    payload: dict = Body(...),
    identity: IdentityService = Depends(get_identity),
) -> dict:
    form = RegisterForm(**payload)
    user, token = await identity.sign_up(form)
    return _token_response(user, token)


@router.post("/login")
async def login(
    payload: dict = Body(...),
    identity: IdentityService = Depends(get_identity),
) -> dict:
    form = LoginForm(**payload)
    user, token = await identity.sign_in_with_password(form)
    return _token_response(user, token)


@router.post("/logout")
async def logout(
    token: str | None = Depends(bearer_token),
    identity: IdentityService = Depends(get_identity),
) -> dict:
    if token:
        await identity.sign_out(token)
    return {"status": "signed_out"}


@router.get("/me")
async def me(user: User = Depends(current_user)) -> dict:
    return user.model_dump(mode="json")


@router.get("/oauth/{provider}")
async def oauth_start(provider: str, settings: Settings = Depends(get_settings)) -> dict:
    """Consent URL for the provider; the client redirects the browser there."""
    state = secrets.token_urlsafe(16)
    return {"url": authorize_url(provider, settings, state), "state": state}


@router.get("/oauth/{provider}/callback")
async def oauth_callback(
    provider: str,
    code: str,
    settings: Settings = Depends(get_settings),
    identity: IdentityService = Depends(get_identity),
) -> dict:
    profile = await exchange_code(provider, code, settings)
    user, token = await identity.sign_in_with_oauth(profile)
    logger.info("oauth_sign_in", provider=provider, user_id=user.id)
    return _token_response(user, token)
