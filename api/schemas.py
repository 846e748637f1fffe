"""Pydantic schemas for API request/response validation and service results."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models import Experience, PaymentStatus, SubscriptionType, TimeCommitment


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str


# ============ Progress ============


class ProgressStats(BaseModel):
    """Statistics derived from a user's progress log. Never persisted."""

    model_config = ConfigDict(frozen=True)

    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    total_tips_completed: int = Field(default=0, ge=0)
    weekly_progress: int = Field(default=0, ge=0, le=7)


class CompletionRequest(BaseModel):
    """Mark a tip's actions as completed."""

    tip_id: str = Field(min_length=1, max_length=200)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("tip_id")
    @classmethod
    def strip_tip_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("tip_id cannot be blank")
        return v


class ProgressLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    log_id: str
    user_id: str
    tip_id: str
    action_completed: bool
    logged_at: datetime
    notes: str | None = None


class CompletionResponse(BaseModel):
    record: ProgressLogResponse
    stats: ProgressStats


class ProgressLogListResponse(BaseModel):
    records: list[ProgressLogResponse]
    total: int


# ============ Users & Tips ============


class TipContent(BaseModel):
    """Content returned by the tip provider."""

    model_config = ConfigDict(frozen=True)

    content: str
    action_items: list[str]


class OnboardingRequest(BaseModel):
    goal: str = Field(min_length=1, max_length=500)
    niche: str = Field(min_length=1, max_length=100)
    experience: Experience
    time_commitment: TimeCommitment = TimeCommitment.FIFTEEN_MINUTES

    @field_validator("goal", "niche")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value cannot be blank")
        return v


class NotificationPreferencesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    enabled: bool
    time: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    stated_goal: str
    niche: str
    experience: Experience
    time_commitment: TimeCommitment | None = None
    onboarding_complete: bool
    notification_preferences: NotificationPreferencesResponse
    created_at: datetime


class TipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tip_id: str
    content: str
    niche: str
    action_items: list[str]
    generated_at: datetime
    difficulty: Experience


class OnboardingResponse(BaseModel):
    user: UserResponse
    tip: TipResponse


class NewTipRequest(BaseModel):
    experience: Experience | None = None


class AccessResponse(BaseModel):
    user_id: str
    has_access: bool


# ============ Payments ============


class PaymentResult(BaseModel):
    """Outcome of a simulated payment."""

    model_config = ConfigDict(frozen=True)

    success: bool
    tx_hash: str | None = None
    error: str | None = None


class PaymentStatusResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: PaymentStatus
    block_number: int | None = None


class SubscriptionStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_active_subscription: bool
    expires_at: datetime | None = None
    type: SubscriptionType | None = None


class PaymentRequest(BaseModel):
    from_address: str = Field(min_length=1, max_length=100)
    amount: str = Field(min_length=1, max_length=32)
    tip_id: str | None = Field(default=None, max_length=200)


class SubscriptionRequest(BaseModel):
    from_address: str = Field(min_length=1, max_length=100)
    type: SubscriptionType


class PriceOption(BaseModel):
    id: str
    amount_eth: str
    display: str
    usd: str


class PricingResponse(BaseModel):
    payments: list[PriceOption]
    tip_costs: list[PriceOption]


# ============ Frame ============


class FrameUntrustedData(BaseModel):
    """Frame action payload as posted by the social client (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    fid: int = Field(ge=1)
    button_index: int = Field(alias="buttonIndex")
    input_text: str | None = Field(default=None, alias="inputText", max_length=2000)


class FrameActionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    untrusted_data: FrameUntrustedData = Field(alias="untrustedData")


class FrameButton(BaseModel):
    label: str
    action: str = "post"
    target: str


class FrameInput(BaseModel):
    text: str


class Frame(BaseModel):
    version: str = "vNext"
    image: str
    buttons: list[FrameButton]
    input: FrameInput | None = None
    state: dict[str, str | int]


class FrameResponse(BaseModel):
    frames: list[Frame]
