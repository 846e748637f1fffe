"""Simulated payment endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette import status

from core.ratelimit import PAYMENT_LIMIT, READ_LIMIT, limiter
from schemas import (
    PaymentRequest,
    PaymentResult,
    PaymentStatusResult,
    PricingResponse,
)
from services.payments_service import PaymentGateway, get_pricing


def get_payment_gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway


PaymentGatewayDep = Annotated[PaymentGateway, Depends(get_payment_gateway)]

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.get("/pricing", response_model=PricingResponse)
async def pricing() -> PricingResponse:
    """Payment and tip prices in ETH with a USD estimate."""
    return get_pricing()


@router.post(
    "",
    response_model=PaymentResult,
    responses={400: {"description": "Invalid address or amount"}},
)
@limiter.limit(PAYMENT_LIMIT)
async def process_payment(
    request: Request,
    body: PaymentRequest,
    gateway: PaymentGatewayDep,
) -> PaymentResult:
    """Run a simulated payment.

    A declined payment is a normal result (``success: false``), not an error.
    """
    try:
        return await gateway.process_payment(body.from_address, body.amount, body.tip_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)
        ) from e


@router.get(
    "/{tx_hash}",
    response_model=PaymentStatusResult,
    responses={400: {"description": "Malformed transaction hash"}},
)
@limiter.limit(READ_LIMIT)
async def payment_status(
    request: Request,
    tx_hash: str,
    gateway: PaymentGatewayDep,
) -> PaymentStatusResult:
    try:
        return await gateway.check_payment_status(tx_hash)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)
        ) from e
