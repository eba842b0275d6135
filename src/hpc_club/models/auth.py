"""Login and registration forms with localized validation messages."""

import re

from pydantic import BaseModel, Field, field_validator

from hpc_club.exceptions import ValidationFailed

MIN_PASSWORD_LENGTH = 6

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MISSING_LOGIN_FIELDS = "Preencha email e senha."
MISSING_REGISTER_FIELDS = "Preencha todos os campos."


def _require_email(value: str, missing_message: str) -> str:
    value = (value or "").strip().lower()
    if not value:
        raise ValidationFailed("email", missing_message)
    if not _EMAIL_RE.match(value):
        raise ValidationFailed("email", "Email inválido.")
    return value


class LoginForm(BaseModel):
    """Fields validate in order; the first failure is raised as ValidationFailed."""

    email: str = Field(default="", validate_default=True)
    password: str = Field(default="", validate_default=True)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _require_email(v, MISSING_LOGIN_FIELDS)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if not v:
            raise ValidationFailed("password", MISSING_LOGIN_FIELDS)
        return v


class RegisterForm(BaseModel):
    """Fields validate in order; the first failure is raised as ValidationFailed."""

    name: str = Field(default="", validate_default=True)
    email: str = Field(default="", validate_default=True)
    password: str = Field(default="", validate_default=True)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValidationFailed("name", MISSING_REGISTER_FIELDS)
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _require_email(v, MISSING_REGISTER_FIELDS)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if not v:
            raise ValidationFailed("password", MISSING_REGISTER_FIELDS)
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(
                "password",
                f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres.",
            )
        return v


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
