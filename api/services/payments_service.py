"""Simulated payments, premium access, and subscriptions.

No real chain interaction happens here: PaymentGateway stands in for an
on-chain payment flow and returns a success/failure result with an opaque
transaction hash. Subscriptions and access grants are stored for real.
"""

import asyncio
import random
import re
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation

from core import get_logger, set_wide_event_nested
from core.config import get_settings
from core.store import KeyValueStore
from models import PaymentStatus, Subscription, SubscriptionType, utcnow
from repositories.access_repository import AccessRepository
from schemas import (
    PaymentResult,
    PaymentStatusResult,
    PriceOption,
    PricingResponse,
    SubscriptionStatus,
)

logger = get_logger(__name__)

# Amounts in ETH
PAYMENT_AMOUNTS = {
    "single_tip": "0.001",
    "weekly_subscription": "0.01",
    "monthly_subscription": "0.03",
}

TIP_COSTS = {
    "beginner": "0.001",
    "intermediate": "0.002",
    "advanced": "0.003",
}

SUBSCRIPTION_AMOUNTS = {
    SubscriptionType.WEEKLY: PAYMENT_AMOUNTS["weekly_subscription"],
    SubscriptionType.MONTHLY: PAYMENT_AMOUNTS["monthly_subscription"],
}

SUBSCRIPTION_DURATION_DAYS = {
    SubscriptionType.WEEKLY: 7,
    SubscriptionType.MONTHLY: 30,
}

DEFAULT_ETH_PRICE_USD = 2500

PAYMENT_FAILED_MESSAGE = "Payment failed - insufficient funds or network error"

_TX_HASH_RE = re.compile(r"^0x[0-9a-f]{64}$")


class PaymentFailedError(Exception):
    """Raised when a payment required for a purchase did not go through."""


def parse_eth_amount(amount: str) -> Decimal:
    """Parse a positive ETH amount, raising ValueError otherwise."""
    try:
        value = Decimal(amount.strip())
    except (InvalidOperation, AttributeError) as e:
        raise ValueError(f"Invalid ETH amount: {amount!r}") from e
    if not value.is_finite() or value <= 0:
        raise ValueError(f"ETH amount must be positive: {amount!r}")
    return value


def format_eth_amount(amount: str) -> str:
    return f"{parse_eth_amount(amount):.4f} ETH"


def calculate_usd_value(amount: str, eth_price: float = DEFAULT_ETH_PRICE_USD) -> str:
    usd = parse_eth_amount(amount) * Decimal(str(eth_price))
    return f"${usd:.2f}"


def _price_option(option_id: str, amount: str) -> PriceOption:
    return PriceOption(
        id=option_id,
        amount_eth=amount,
        display=format_eth_amount(amount),
        usd=calculate_usd_value(amount),
    )


def get_pricing() -> PricingResponse:
    return PricingResponse(
        payments=[_price_option(k, v) for k, v in PAYMENT_AMOUNTS.items()],
        tip_costs=[_price_option(k, v) for k, v in TIP_COSTS.items()],
    )


class PaymentGateway:
    """Simulated payment gateway.

    Each payment succeeds with probability ``success_rate``. Randomness comes
    from ``rng`` so tests can make outcomes deterministic.
    """

    def __init__(
        self,
        *,
        success_rate: float | None = None,
        delay_seconds: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        settings = get_settings()
        self.success_rate = (
            settings.payment_success_rate if success_rate is None else success_rate
        )
        self.delay_seconds = (
            settings.payment_delay_seconds if delay_seconds is None else delay_seconds
        )
        self.rng = rng or random.Random()

    async def _simulate_latency(self, seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)

    def _new_tx_hash(self) -> str:
        return f"0x{self.rng.getrandbits(256):064x}"

    async def process_payment(
        self, from_address: str, amount: str, tip_id: str | None = None
    ) -> PaymentResult:
        if not from_address or not from_address.strip():
            raise ValueError("from_address is required")
        value = parse_eth_amount(amount)

        logger.info(
            "payment.processing",
            amount_eth=str(value),
            purpose=tip_id or "subscription",
        )
        await self._simulate_latency(self.delay_seconds)

        if self.rng.random() < self.success_rate:
            result = PaymentResult(success=True, tx_hash=self._new_tx_hash())
        else:
            result = PaymentResult(success=False, error=PAYMENT_FAILED_MESSAGE)

        set_wide_event_nested("payment", amount_eth=str(value), success=result.success)
        logger.info("payment.processed", success=result.success, tx_hash=result.tx_hash)
        return result

    async def check_payment_status(self, tx_hash: str) -> PaymentStatusResult:
        if not _TX_HASH_RE.match(tx_hash):
            raise ValueError(f"Invalid transaction hash: {tx_hash!r}")

        await self._simulate_latency(self.delay_seconds / 2)

        roll = self.rng.random()
        if roll > 0.8:
            return PaymentStatusResult(status=PaymentStatus.PENDING)
        if roll > 0.1:
            return PaymentStatusResult(
                status=PaymentStatus.CONFIRMED,
                block_number=self.rng.randrange(1_000_000),
            )
        return PaymentStatusResult(status=PaymentStatus.FAILED)


async def has_access(store: KeyValueStore, user_id: str) -> bool:
    return await AccessRepository(store).has_access(user_id)


async def create_subscription(
    store: KeyValueStore,
    user_id: str,
    subscription_type: SubscriptionType,
    tx_hash: str,
    *,
    now: datetime | None = None,
) -> Subscription:
    """Store a subscription and grant premium access for its duration."""
    now = now or utcnow()
    duration_days = SUBSCRIPTION_DURATION_DAYS[subscription_type]
    subscription = Subscription(
        user_id=user_id,
        type=subscription_type,
        tx_hash=tx_hash,
        created_at=now,
        expires_at=now + timedelta(days=duration_days),
    )

    repo = AccessRepository(store)
    await repo.save_subscription(subscription, now=now)
    await repo.grant(user_id, duration_days)

    logger.info(
        "subscription.created",
        user_id=user_id,
        type=subscription_type.value,
        expires_at=subscription.expires_at.isoformat(),
    )
    return subscription


async def check_subscription_status(
    store: KeyValueStore, user_id: str, *, now: datetime | None = None
) -> SubscriptionStatus:
    subscription = await AccessRepository(store).get_subscription(user_id)
    if subscription is None or not subscription.is_active(now):
        return SubscriptionStatus(has_active_subscription=False)
    return SubscriptionStatus(
        has_active_subscription=True,
        expires_at=subscription.expires_at,
        type=subscription.type,
    )


async def purchase_subscription(
    store: KeyValueStore,
    gateway: PaymentGateway,
    user_id: str,
    from_address: str,
    subscription_type: SubscriptionType,
    *,
    now: datetime | None = None,
) -> Subscription:
    """Charge the subscription price and activate the subscription.

    Raises:
        PaymentFailedError: If the gateway reports a failed payment.
    """
    result = await gateway.process_payment(
        from_address, SUBSCRIPTION_AMOUNTS[subscription_type]
    )
    if not result.success or result.tx_hash is None:
        raise PaymentFailedError(result.error or PAYMENT_FAILED_MESSAGE)

    return await create_subscription(
        store, user_id, subscription_type, result.tx_hash, now=now
    )
