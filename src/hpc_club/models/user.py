"""User account models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class SubscriptionTier(StrEnum):
    """Subscription levels."""

    FREE = "free"
    PRO = "pro"


class User(BaseModel):
    """Public view of an account."""

    id: str
    name: str
    email: str
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    photo_url: str | None = None

    @property
    def is_pro(self) -> bool:
        return self.subscription_tier == SubscriptionTier.PRO


class UserRecord(User):
    """Stored account row, including credentials and billing linkage."""

    password_hash: str | None = None
    oauth_provider: str | None = None
    stripe_customer_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)

    def public(self) -> User:
        return User(**self.model_dump(include=set(User.model_fields)))


class ProfileUpdate(BaseModel):
    name: str | None = None
    photo_url: str | None = None


class Preferences(BaseModel):
    """Settings panel preferences kept in the key-value store."""

    theme: str = "dark"
    daily_goal_hours: float = 4.0
    notifications: bool = True
    reduced_motion: bool = False
