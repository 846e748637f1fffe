"""Persisted records for Daily Tips.

Records are stored as JSON in the key-value store. Field aliases are camelCase
so stored payloads keep the shape written by the original web client
(``{"logId": ..., "loggedAt": ...}``); Python code uses snake_case names.
"""

import uuid
from datetime import UTC, datetime
from enum import Enum as PyEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


def new_log_id() -> str:
    return f"log_{uuid.uuid4().hex}"


def as_utc(value: datetime) -> datetime:
    # Naive timestamps are UTC (stored payloads and caller-supplied clocks)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Experience(str, PyEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class TimeCommitment(str, PyEnum):
    FIVE_MINUTES = "5min"
    FIFTEEN_MINUTES = "15min"
    THIRTY_MINUTES = "30min"


class SubscriptionType(str, PyEnum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class PaymentStatus(str, PyEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class StoredRecord(BaseModel):
    """Base for records serialized into the key-value store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, payload: str | bytes):
        return cls.model_validate_json(payload)


class ProgressLogRecord(StoredRecord):
    """One "mark complete" action. Append-only: never mutated or deleted."""

    log_id: str = Field(default_factory=new_log_id, min_length=1)
    user_id: str = Field(min_length=1)
    tip_id: str = Field(min_length=1)
    action_completed: bool = True
    logged_at: datetime = Field(default_factory=utcnow)
    notes: str | None = None

    @field_validator("logged_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        return as_utc(v)


class NotificationPreferences(StoredRecord):
    enabled: bool = True
    time: str = Field(default="09:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")


class User(StoredRecord):
    user_id: str = Field(min_length=1)
    stated_goal: str
    niche: str
    experience: Experience = Experience.INTERMEDIATE
    time_commitment: TimeCommitment | None = None
    onboarding_complete: bool = False
    notification_preferences: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        return as_utc(v)


class DailyTip(StoredRecord):
    tip_id: str = Field(min_length=1)
    content: str
    niche: str
    action_items: list[str] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utcnow)
    difficulty: Experience = Experience.INTERMEDIATE

    @field_validator("generated_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        return as_utc(v)


class Subscription(StoredRecord):
    user_id: str = Field(min_length=1)
    type: SubscriptionType
    tx_hash: str
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime

    @field_validator("created_at", "expires_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        return as_utc(v)

    def is_active(self, now: datetime | None = None) -> bool:
        return self.expires_at > (now or utcnow())
