"""User endpoints: onboarding, profile, daily tips, access and subscriptions."""

from fastapi import APIRouter, Request
from starlette import status

from core.ratelimit import PAYMENT_LIMIT, READ_LIMIT, WRITE_LIMIT, limiter
from core.store import StoreDep
from routes.payments_routes import PaymentGatewayDep
from schemas import (
    AccessResponse,
    NewTipRequest,
    OnboardingRequest,
    OnboardingResponse,
    SubscriptionRequest,
    SubscriptionStatus,
    TipResponse,
    UserResponse,
)
from services.payments_service import (
    check_subscription_status,
    has_access,
    purchase_subscription,
)
from services.tips_service import create_daily_tip
from services.users_service import get_user, onboard_user

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post(
    "/onboard",
    response_model=OnboardingResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(WRITE_LIMIT)
async def onboard(
    request: Request,
    body: OnboardingRequest,
    store: StoreDep,
) -> OnboardingResponse:
    """Create a user from onboarding answers and return their first tip."""
    user, tip = await onboard_user(store, body)
    return OnboardingResponse(
        user=UserResponse.model_validate(user),
        tip=TipResponse.model_validate(tip),
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"description": "User not found"}},
)
@limiter.limit(READ_LIMIT)
async def get_user_profile(
    request: Request,
    user_id: str,
    store: StoreDep,
) -> UserResponse:
    user = await get_user(store, user_id)
    return UserResponse.model_validate(user)


@router.post(
    "/{user_id}/tips",
    response_model=TipResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "User not found"}},
)
@limiter.limit(WRITE_LIMIT)
async def new_tip(
    request: Request,
    user_id: str,
    store: StoreDep,
    body: NewTipRequest | None = None,
) -> TipResponse:
    """Generate and store a fresh daily tip for the user."""
    user = await get_user(store, user_id)
    experience = body.experience if body else None
    tip = await create_daily_tip(store, user, experience=experience)
    return TipResponse.model_validate(tip)


@router.get("/{user_id}/access", response_model=AccessResponse)
@limiter.limit(READ_LIMIT)
async def get_access(
    request: Request,
    user_id: str,
    store: StoreDep,
) -> AccessResponse:
    return AccessResponse(user_id=user_id, has_access=await has_access(store, user_id))


@router.get("/{user_id}/subscription", response_model=SubscriptionStatus)
@limiter.limit(READ_LIMIT)
async def get_subscription(
    request: Request,
    user_id: str,
    store: StoreDep,
) -> SubscriptionStatus:
    return await check_subscription_status(store, user_id)


@router.post(
    "/{user_id}/subscription",
    response_model=SubscriptionStatus,
    status_code=status.HTTP_201_CREATED,
    responses={402: {"description": "Payment failed"}},
)
@limiter.limit(PAYMENT_LIMIT)
async def subscribe(
    request: Request,
    user_id: str,
    body: SubscriptionRequest,
    store: StoreDep,
    gateway: PaymentGatewayDep,
) -> SubscriptionStatus:
    """Pay for a weekly or monthly subscription and activate it."""
    subscription = await purchase_subscription(
        store, gateway, user_id, body.from_address, body.type
    )
    return SubscriptionStatus(
        has_active_subscription=True,
        expires_at=subscription.expires_at,
        type=subscription.type,
    )
