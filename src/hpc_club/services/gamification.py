"""XP and levels earned from study activity."""

import math

import structlog

from hpc_club.exceptions import ValidationFailed
from hpc_club.models.dashboard import UserLevel
from hpc_club.storage.kv import GAMIFICATION_KEY, KeyValueStore

logger = structlog.get_logger()

LEVEL_BASE_XP = 1000
LEVEL_MULTIPLIER = 1.2
XP_PER_STUDY_MINUTE = 12


def study_xp(minutes: float) -> int:
    """XP for a focus session, rounded half up."""
    return math.floor(minutes * XP_PER_STUDY_MINUTE + 0.5)


def apply_xp(current: UserLevel, amount: int) -> UserLevel:
    """Add XP, levelling up as many times as it covers.

    Each level-up spends ``next_level_xp`` and raises the next threshold by
    ``LEVEL_MULTIPLIER`` (floored); leftover XP carries over.
    """
    xp = current.current_xp + amount
    level = current.level
    next_xp = current.next_level_xp
    while xp >= next_xp:
        xp -= next_xp
        level += 1
        next_xp = math.floor(next_xp * LEVEL_MULTIPLIER)
    return UserLevel(
        level=level,
        current_xp=xp,
        next_level_xp=next_xp,
        total_xp=current.total_xp + amount,
    )


class GamificationService:
    """Per-user level state in the key-value store."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def get_level(self, user_id: str) -> UserLevel:
        data = self.kv.for_user(user_id).get(GAMIFICATION_KEY)
        if not data:
            return UserLevel(next_level_xp=LEVEL_BASE_XP)
        return UserLevel(**data)

    def add_xp(self, user_id: str, amount: int, source: str) -> UserLevel:
        if amount < 0:
            raise ValidationFailed("amount", "XP não pode ser negativo.")
        before = self.get_level(user_id)
        after = apply_xp(before, amount)
        self.kv.for_user(user_id).set(GAMIFICATION_KEY, after.model_dump())
        logger.info("xp_awarded", user_id=user_id, amount=amount, source=source)
        if after.level > before.level:
            logger.info("level_up", user_id=user_id, level=after.level)
        return after
