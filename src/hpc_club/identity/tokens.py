"""Signed session tokens (HS256 JWT)."""

import time

import jwt

from hpc_club.exceptions import AuthError

JWT_ALG = "HS256"


def create_access_token(user_id: str, jti: str, secret: str, expire_minutes: int) -> str:
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "jti": jti,
        "iat": now,
        "exp": now + expire_minutes * 60,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALG)


def decode_access_token(token: str, secret: str) -> dict:
    try:
        data = jwt.decode(token, secret, algorithms=[JWT_ALG])
    except jwt.ExpiredSignatureError:
        raise AuthError("Sessão expirada.")
    except jwt.InvalidTokenError:
        raise AuthError("Sessão inválida.")
    if not data.get("sub") or not data.get("jti"):
        raise AuthError("Sessão inválida.")
    return data
