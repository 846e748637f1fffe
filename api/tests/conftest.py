"""Pytest configuration and shared fixtures.

This module provides:
- Test settings (in-memory store, debug mode, tip generation disabled)
- A fresh MemoryStore per test for repository/service tests
- FastAPI test client for route integration tests
- A deterministic payment gateway

No Redis server is required: every test runs against MemoryStore.
"""

# Set environment variables BEFORE any imports that trigger Settings validation
import os

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("TIP_GENERATION_ENABLED", "false")
os.environ.setdefault("PAYMENT_DELAY_SECONDS", "0")
os.environ.setdefault("APP_URL", "https://tips.example.com")

import random
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from core.config import clear_settings_cache
from core.store import MemoryStore
from core.wide_event import init_wide_event
from services.payments_service import PaymentGateway

# Fixed reference time for deterministic tests
FROZEN_NOW = datetime(2026, 1, 23, 12, 0, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def setup_wide_event():
    """Initialize wide_event context for all tests.

    Services use set_wide_event_fields() which requires context initialization.
    In production this is done by middleware; in tests we do it here.
    """
    init_wide_event()
    yield


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Make every test see settings built from the current environment."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def now() -> datetime:
    return FROZEN_NOW


@pytest_asyncio.fixture
async def store() -> AsyncGenerator[MemoryStore]:
    """Empty in-memory store, closed after the test."""
    memory_store = MemoryStore()
    yield memory_store
    await memory_store.close()


@pytest.fixture
def gateway() -> PaymentGateway:
    """Payment gateway that always succeeds without delay."""
    return PaymentGateway(success_rate=1.0, delay_seconds=0, rng=random.Random(42))


@pytest.fixture
def failing_gateway() -> PaymentGateway:
    """Payment gateway that always declines."""
    return PaymentGateway(success_rate=0.0, delay_seconds=0, rng=random.Random(42))


@pytest_asyncio.fixture
async def app(store: MemoryStore, gateway: PaymentGateway) -> AsyncGenerator[FastAPI]:
    """FastAPI app wired to the test store and gateway.

    ASGITransport does not run the lifespan, so state is set directly.
    """
    # Import here so the environment above is in place first
    from main import app as fastapi_app

    fastapi_app.state.store = store
    fastapi_app.state.payment_gateway = gateway
    yield fastapi_app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
