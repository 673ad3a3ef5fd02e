"""
Shared fixtures.

The application is pointed at a throwaway SQLite file before it is imported;
every test that asks for ``client`` or ``db_session`` gets freshly created
tables.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone

_DB_DIR = tempfile.mkdtemp(prefix="foodexpress-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["ENV_MODE"] = "development"
os.environ["ORDER_AUTO_ADVANCE_CATCH_UP"] = "false"
os.environ.pop("FRONTEND_URL", None)

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import update  # noqa: E402

from app.core.config import get_settings  # noqa: E402

get_settings.cache_clear()

from app.database import Base, async_session_maker, engine  # noqa: E402
from app.main import app as fastapi_app  # noqa: E402
from app.models import Order  # noqa: E402


@pytest.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine


@pytest.fixture
async def client(database):
    transport = httpx.ASGITransport(app=fastapi_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def db_session(database):
    async with async_session_maker() as session:
        yield session


@pytest.fixture
def order_payload():
    """Build a checkout body; keyword arguments replace top-level fields."""

    def build(**overrides) -> dict:
        payload = {
            "userId": "user-1",
            "userFirebaseUid": "firebase-1",
            "items": [
                {
                    "name": "Margherita Pizza",
                    "price": 300,
                    "quantity": 2,
                    "restaurantName": "Bella Napoli",
                },
                {
                    "name": "Garlic Bread",
                    "price": 86,
                    "quantity": 1,
                    "restaurantName": "Bella Napoli",
                },
            ],
            "total": 686,
            "paymentMethod": {"type": "cash"},
            "deliveryAddress": {
                "label": "Home",
                "street": "12 MG Road",
                "city": "Bengaluru",
                "state": "KA",
                "postalCode": "560001",
            },
        }
        payload.update(overrides)
        return payload

    return build


@pytest.fixture
def create_order(client, order_payload):
    async def create(**overrides) -> dict:
        response = await client.post("/api/orders", json=order_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()

    return create


@pytest.fixture
def backdate_order(database):
    """Move an order's createdAt into the past by ``minutes``."""

    async def backdate(order_id: str, minutes: float) -> None:
        async with async_session_maker() as session:
            await session.execute(
                update(Order)
                .where(Order.id == order_id)
                .values(created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes))
            )
            await session.commit()

    return backdate
