from app.database import get_db
from app.main import app


class BrokenSession:
    async def execute(self, statement):
        raise ConnectionError("connection refused")


async def broken_db():
    yield BrokenSession()


async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Welcome to FoodExpress Ordering API"
    assert body["health"] == "/health"


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == {"status": "connected"}
    assert body["environment"] == "development"
    assert body["uptime"] >= 0


async def test_health_reports_unreachable_database(client):
    app.dependency_overrides[get_db] = broken_db
    try:
        response = await client.get("/health")
    finally:
        app.dependency_overrides.pop(get_db, None)

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "degraded"
    assert body["database"] == {"status": "disconnected"}


async def test_unknown_route(client):
    response = await client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"message": "Route not found"}


async def test_cors_preflight_from_dev_frontend(client):
    response = await client.options(
        "/api/orders",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "PATCH",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert response.headers["access-control-allow-credentials"] == "true"


async def test_cors_rejects_unknown_origin(client):
    response = await client.options(
        "/api/orders",
        headers={
            "Origin": "https://evil.example",
            "Access-Control-Request-Method": "GET",
        },
    )

    assert "access-control-allow-origin" not in response.headers
