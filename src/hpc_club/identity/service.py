"""Identity service: accounts, password/OAuth sign-in and session tokens."""

import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime

import structlog
from passlib.context import CryptContext

from hpc_club.config import Settings
from hpc_club.exceptions import AuthError, NotFoundError, ValidationFailed
from hpc_club.identity.oauth import OAuthProfile
from hpc_club.identity.tokens import create_access_token, decode_access_token
from hpc_club.models.auth import LoginForm, RegisterForm
from hpc_club.models.user import ProfileUpdate, SubscriptionTier, User, UserRecord
from hpc_club.storage.tables import TableStore

logger = structlog.get_logger()

USERS_TABLE = "users"
SESSIONS_TABLE = "auth_sessions"

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
USER_UPDATED = "USER_UPDATED"

AuthCallback = Callable[[str, User | None], Awaitable[None]]

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class IdentityService:
    """Owns user accounts and their sessions.

    Users live in the ``users`` table with ``user_id == id``; each issued
    token has a row in ``auth_sessions`` keyed by its ``jti`` so sign-out
    can revoke it.

    Args:
        store: Table store for accounts and sessions.
        settings: Application settings (JWT secret, expiry).
    """

    def __init__(self, store: TableStore, settings: Settings):
        self.store = store
        self.settings = settings
        self._callbacks: list[AuthCallback] = []

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        """Register a callback for auth events.

        Args:
            callback: Async callable(event, user).

        Returns:
            A function that removes the callback.
        """
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def _emit(self, event: str, user: User | None) -> None:
        for callback in list(self._callbacks):
            try:
                await callback(event, user)
            except Exception:
                logger.exception("auth_callback_failed", auth_event=event)

    def find_by_email(self, email: str) -> UserRecord | None:
        email = email.strip().lower()
        row = self.store.find_one(USERS_TABLE, lambda r: r.get("email") == email)
        return UserRecord(**row) if row else None

    def get_record(self, user_id: str) -> UserRecord:
        row = self.store.get(USERS_TABLE, user_id, user_id)
        if row is None:
            raise NotFoundError("Usuário não encontrado.")
        return UserRecord(**row)

    def _create_record(self, record: UserRecord) -> UserRecord:
        values = record.model_dump(mode="json")
        row = self.store.insert(USERS_TABLE, record.id, values)
        return UserRecord(**row)

    def _issue_token(self, user_id: str) -> str:
        jti = str(uuid.uuid4())
        self.store.insert(SESSIONS_TABLE, user_id, {
            "id": jti,
            "last_seen": datetime.now().isoformat(),
        })
        return create_access_token(
            user_id, jti, self.settings.jwt_secret, self.settings.session_expire_minutes
        )

    async def sign_up(self, form: RegisterForm) -> tuple[User, str]:
        """Create an account and sign it in."""
        if self.find_by_email(form.email):
            raise ValidationFailed("email", "Este email já está cadastrado.")
        record = self._create_record(UserRecord(
            id=str(uuid.uuid4()),
            name=form.name,
            email=form.email,
            password_hash=pwd_context.hash(form.password),
        ))
        token = self._issue_token(record.id)
        user = record.public()
        logger.info("user_signed_up", user_id=user.id)
        await self._emit(SIGNED_IN, user)
        return user, token

    async def sign_in_with_password(self, form: LoginForm) -> tuple[User, str]:
        record = self.find_by_email(form.email)
        if record is None or not record.password_hash or not pwd_context.verify(
            form.password, record.password_hash
        ):
            logger.info("sign_in_rejected")
            raise AuthError("Email ou senha incorretos.")
        token = self._issue_token(record.id)
        user = record.public()
        logger.info("user_signed_in", user_id=user.id)
        await self._emit(SIGNED_IN, user)
        return user, token

    async def sign_in_with_oauth(self, profile: OAuthProfile) -> tuple[User, str]:
        """Sign in with a verified provider profile, linking by email."""
        record = self.find_by_email(profile.email)
        if record is None:
            record = self._create_record(UserRecord(
                id=str(uuid.uuid4()),
                name=profile.name,
                email=profile.email,
                photo_url=profile.picture,
                oauth_provider=profile.provider,
            ))
            logger.info("user_signed_up_oauth", user_id=record.id, provider=profile.provider)
        token = self._issue_token(record.id)
        user = record.public()
        await self._emit(SIGNED_IN, user)
        return user, token

    async def get_user(self, token: str) -> User:
        """Resolve a session token to its user."""
        data = decode_access_token(token, self.settings.jwt_secret)
        user_id, jti = data["sub"], data["jti"]
        if self.store.get(SESSIONS_TABLE, user_id, jti) is None:
            raise AuthError("Sessão inválida ou revogada.")
        try:
            return self.get_record(user_id).public()
        except NotFoundError:
            raise AuthError("Usuário não encontrado.")

    async def sign_out(self, token: str) -> None:
        try:
            data = decode_access_token(token, self.settings.jwt_secret)
        except AuthError:
            return
        self.store.delete(SESSIONS_TABLE, data["sub"], data["jti"])
        logger.info("user_signed_out", user_id=data["sub"])
        await self._emit(SIGNED_OUT, None)

    async def update_user_metadata(self, user_id: str, update: ProfileUpdate) -> User:
        changes = update.model_dump(exclude_none=True)
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                raise ValidationFailed("name", "O nome não pode ficar vazio.")
        row = self.store.update(USERS_TABLE, user_id, user_id, changes)
        if row is None:
            raise NotFoundError("Usuário não encontrado.")
        user = UserRecord(**row).public()
        await self._emit(USER_UPDATED, user)
        return user

    async def set_subscription_tier(
        self,
        user_id: str,
        tier: SubscriptionTier,
        stripe_customer_id: str | None = None,
    ) -> User:
        changes: dict = {"subscription_tier": tier.value}
        if stripe_customer_id:
            changes["stripe_customer_id"] = stripe_customer_id
        row = self.store.update(USERS_TABLE, user_id, user_id, changes)
        if row is None:
            raise NotFoundError("Usuário não encontrado.")
        user = UserRecord(**row).public()
        logger.info("subscription_tier_changed", user_id=user_id, tier=tier.value)
        await self._emit(USER_UPDATED, user)
        return user

    def link_customer(self, user_id: str, customer_id: str) -> None:
        """Remember the payment-provider customer without touching the tier."""
        row = self.store.update(USERS_TABLE, user_id, user_id, {"stripe_customer_id": customer_id})
        if row is None:
            raise NotFoundError("Usuário não encontrado.")
        logger.info("stripe_customer_linked", user_id=user_id)

    def find_by_customer(self, customer_id: str) -> UserRecord | None:
        row = self.store.find_one(
            USERS_TABLE, lambda r: r.get("stripe_customer_id") == customer_id
        )
        return UserRecord(**row) if row else None
