"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import os
import sys
from contextlib import asynccontextmanager

import pytest
import pytest_asyncio

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# config.py reads the environment at import time; these must be set first
os.environ["RUNTIME_ENVIRONMENT"] = "test"
os.environ["DB_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ORDER_STORE"] = "memory"
os.environ.setdefault("AUTH_SESSION_SECRET", "test_session_secret_0123456789abcdef0123456789")
os.environ.setdefault("ADMIN_API_TOKEN", "test_admin_token")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("RESEND_API_KEY", "re_test_key")
os.environ.setdefault("SITE_URL", "https://forcedowels.test")
os.environ.setdefault("ADMIN_EMAIL_LIST", "admin@forcedowels.test")
os.environ.setdefault("BUSINESS_EMAIL_LIST", "info@forcedowels.test")

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

import db  # registers all models on Base.metadata
from models.base import Base
from models.cart import CartItemDTO
from services.checkout import CheckoutService


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine (in-memory SQLite)."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    db.enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    """Async context manager factory shaped like db.get_db_session."""
    maker = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def factory():
        async with maker() as session:
            yield session

    return factory


@pytest_asyncio.fixture
async def test_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


# ============================================================================
# Domain Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def clear_checkout_locks():
    CheckoutService._session_locks.clear()
    CheckoutService._session_lock_users.clear()
    yield
    CheckoutService._session_locks.clear()
    CheckoutService._session_lock_users.clear()


@pytest.fixture
def dowel_item():
    def _make(quantity: int = 5000, price_per_unit: float = 0.072, tier: str = "5,000-20,000") -> CartItemDTO:
        return CartItemDTO(
            id=f"force-dowels-{quantity}",
            name="Force Dowels",
            quantity=quantity,
            tier=tier,
            price_per_unit=price_per_unit,
        )
    return _make


@pytest.fixture
def kit_item():
    return CartItemDTO(id="kit-1", name="Force Dowels Kit", quantity=1, tier="Kit", price_per_unit=36.0)


@pytest.fixture
def shipping_info():
    return {
        "name": "Jane Builder",
        "address": "123 Main Street",
        "city": "Phoenix",
        "state": "AZ",
        "zip": "85004",
        "country": "US",
    }
