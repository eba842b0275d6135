"""OAuth sign-in (Google authorization-code flow)."""

from urllib.parse import urlencode

import httpx
import structlog
from pydantic import BaseModel

from hpc_club.config import Settings
from hpc_club.exceptions import AuthError

logger = structlog.get_logger()

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

SUPPORTED_PROVIDERS = ("google",)


class OAuthProfile(BaseModel):
    provider: str
    email: str
    name: str
    picture: str | None = None


def _check_provider(provider: str, settings: Settings) -> None:
    if provider not in SUPPORTED_PROVIDERS:
        raise AuthError(f"Provedor OAuth não suportado: {provider}")
    if not settings.google_client_id:
        raise AuthError("Login social não configurado.")


def authorize_url(provider: str, settings: Settings, state: str) -> str:
    """Build the provider consent URL the browser is redirected to."""
    _check_provider(provider, settings)
    query = urlencode({
        "client_id": settings.google_client_id,
        "redirect_uri": settings.google_redirect_uri,
        "response_type": "code",
        "scope": "openid email profile",
        "state": state,
        "prompt": "select_account",
    })
    return f"{GOOGLE_AUTH_URL}?{query}"


async def exchange_code(
    provider: str,
    code: str,
    settings: Settings,
    client: httpx.AsyncClient | None = None,
) -> OAuthProfile:
    """Trade an authorization code for the user's profile.

    Args:
        provider: OAuth provider name.
        code: Authorization code from the callback.
        settings: Application settings with client credentials.
        client: Optional HTTP client (tests pass a mock transport).

    Returns:
        The verified profile from the provider.
    """
    _check_provider(provider, settings)
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=10.0)
    try:
        token_resp = await client.post(GOOGLE_TOKEN_URL, data={
            "code": code,
            "client_id": settings.google_client_id,
            "client_secret": settings.google_client_secret,
            "redirect_uri": settings.google_redirect_uri,
            "grant_type": "authorization_code",
        })
        if token_resp.status_code != 200:
            logger.warning("oauth_token_exchange_failed", status=token_resp.status_code)
            raise AuthError("Falha no login social.")
        access_token = token_resp.json().get("access_token")

        info_resp = await client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if info_resp.status_code != 200:
            logger.warning("oauth_userinfo_failed", status=info_resp.status_code)
            raise AuthError("Falha no login social.")
        info = info_resp.json()
    except httpx.HTTPError as e:
        logger.error("oauth_http_error", error=str(e))
        raise AuthError("Falha no login social.")
    finally:
        if owns_client:
            await client.aclose()

    if not info.get("email") or not info.get("email_verified", True):
        raise AuthError("Email do provedor não verificado.")
    return OAuthProfile(
        provider=provider,
        email=info["email"].lower(),
        name=info.get("name") or info["email"].split("@")[0],
        picture=info.get("picture"),
    )
