"""FastAPI dependency providers: storage, services and the current user."""

import functools

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hpc_club.ai.client import GenerativeClient
from hpc_club.ai.generator import ContentGenerator
from hpc_club.ai.tutor import TutorChat
from hpc_club.config import Settings, get_settings
from hpc_club.exceptions import AuthError, SubscriptionRequired
from hpc_club.identity.service import AuthCallback, IdentityService
from hpc_club.models.user import User
from hpc_club.services.analytics import AnalyticsService
from hpc_club.services.billing import BillingService
from hpc_club.services.error_list import ErrorListService
from hpc_club.services.flashcards import FlashcardService
from hpc_club.services.materials import MaterialService
from hpc_club.services.notes import NoteService
from hpc_club.services.simulados import SimuladoService
from hpc_club.services.tasks import TaskService
from hpc_club.services.tutors import TutorService
from hpc_club.storage.kv import KeyValueStore
from hpc_club.storage.tables import TableStore

# Registered by main.py, attached to every IdentityService handed out
auth_listeners: list[AuthCallback] = []

bearer = HTTPBearer(auto_error=False)


@functools.lru_cache
def _client(api_key: str, model: str, max_retries: int, retry_delay: float) -> GenerativeClient:
    return GenerativeClient(api_key, model=model, max_retries=max_retries, retry_delay=retry_delay)


def get_store(settings: Settings = Depends(get_settings)) -> TableStore:
    return TableStore(settings.tables_dir)


def get_kv(settings: Settings = Depends(get_settings)) -> KeyValueStore:
    return KeyValueStore(settings.kv_dir)


def get_ai_client(settings: Settings = Depends(get_settings)) -> GenerativeClient:
    return _client(
        settings.openai_api_key,
        settings.generation_model,
        settings.ai_max_retries,
        settings.ai_retry_delay_seconds,
    )


def get_generator(client: GenerativeClient = Depends(get_ai_client)) -> ContentGenerator:
    return ContentGenerator(client)


def get_identity(
    store: TableStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> IdentityService:
    identity = IdentityService(store, settings)
    for callback in auth_listeners:
        identity.on_auth_state_change(callback)
    return identity


def get_tasks(store: TableStore = Depends(get_store)) -> TaskService:
    return TaskService(store)


def get_materials(kv: KeyValueStore = Depends(get_kv)) -> MaterialService:
    return MaterialService(kv)


def get_flashcards(store: TableStore = Depends(get_store)) -> FlashcardService:
    return FlashcardService(store)


def get_error_list(
    kv: KeyValueStore = Depends(get_kv),
    flashcards: FlashcardService = Depends(get_flashcards),
    generator: ContentGenerator = Depends(get_generator),
) -> ErrorListService:
    return ErrorListService(kv, flashcards, generator)


def get_simulados(
    store: TableStore = Depends(get_store),
    generator: ContentGenerator = Depends(get_generator),
) -> SimuladoService:
    return SimuladoService(store, generator)


def get_notes(
    store: TableStore = Depends(get_store),
    kv: KeyValueStore = Depends(get_kv),
    generator: ContentGenerator = Depends(get_generator),
) -> NoteService:
    return NoteService(store, kv, generator)


def get_tutors(
    kv: KeyValueStore = Depends(get_kv),
    client: GenerativeClient = Depends(get_ai_client),
) -> TutorService:
    return TutorService(kv, TutorChat(client))


def get_analytics(
    kv: KeyValueStore = Depends(get_kv),
    tasks: TaskService = Depends(get_tasks),
    flashcards: FlashcardService = Depends(get_flashcards),
    errors: ErrorListService = Depends(get_error_list),
    tutors: TutorService = Depends(get_tutors),
    simulados: SimuladoService = Depends(get_simulados),
) -> AnalyticsService:
    return AnalyticsService(kv, tasks, flashcards, errors, tutors, simulados)


def get_billing(
    identity: IdentityService = Depends(get_identity),
    settings: Settings = Depends(get_settings),
) -> BillingService:
    return BillingService(identity, settings)


def bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> str | None:
    return credentials.credentials if credentials else None


async def current_user(
    token: str | None = Depends(bearer_token),
    identity: IdentityService = Depends(get_identity),
) -> User:
    if not token:
        raise AuthError("Faça login para continuar.")
    return await identity.get_user(token)


def require_pro(feature: str):
    """Dependency factory: the current user, if on the Pro tier."""

    async def dependency(user: User = Depends(current_user)) -> User:
        if not user.is_pro:
            raise SubscriptionRequired(feature)
        return user

    return dependency
