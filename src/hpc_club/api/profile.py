"""Profile, preferences and dashboard overview routes."""

from fastapi import APIRouter, Depends

from hpc_club.api.deps import current_user, get_analytics, get_identity, get_kv
from hpc_club.identity.service import IdentityService
from hpc_club.models.dashboard import StudySessionCreate
from hpc_club.models.user import Preferences, ProfileUpdate, User
from hpc_club.services.analytics import AnalyticsService
from hpc_club.storage.kv import PREFERENCES_KEY, KeyValueStore

router = APIRouter(prefix="/api")


@router.get("/profile")
async def get_profile(user: User = Depends(current_user)) -> dict:
    return {**user.model_dump(mode="json"), "is_pro": user.is_pro}


@router.patch("/profile")
async def update_profile(
    update: ProfileUpdate,
    user: User = Depends(current_user),
    identity: IdentityService = Depends(get_identity),
) -> dict:
    updated = await identity.update_user_metadata(user.id, update)
    return {**updated.model_dump(mode="json"), "is_pro": updated.is_pro}


@router.get("/preferences")
async def get_preferences(
    user: User = Depends(current_user),
    kv: KeyValueStore = Depends(get_kv),
) -> dict:
    return Preferences(**kv.for_user(user.id).get(PREFERENCES_KEY, {})).model_dump()


@router.put("/preferences")
async def save_preferences(
    preferences: Preferences,
    user: User = Depends(current_user),
    kv: KeyValueStore = Depends(get_kv),
) -> dict:
    kv.for_user(user.id).set(PREFERENCES_KEY, preferences.model_dump())
    return preferences.model_dump()


@router.get("/dashboard")
async def dashboard(
    user: User = Depends(current_user),
    analytics: AnalyticsService = Depends(get_analytics),
) -> dict:
    return analytics.summary(user).model_dump(mode="json")


@router.post("/study-sessions")
async def log_study_session(
    data: StudySessionCreate,
    user: User = Depends(current_user),
    analytics: AnalyticsService = Depends(get_analytics),
) -> dict:
    return analytics.log_study_session(user.id, data).model_dump()


@router.get("/level")
async def level(
    user: User = Depends(current_user),
    analytics: AnalyticsService = Depends(get_analytics),
) -> dict:
    return analytics.gamification.get_level(user.id).model_dump()
