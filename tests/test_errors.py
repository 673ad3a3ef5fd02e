import httpx
import pytest
from fastapi import FastAPI

from app.core.errors import (
    ConflictError,
    NotFoundError,
    TokenExpiredError,
    UnauthorizedError,
    ValidationError,
    format_validation_error,
    register_exception_handlers,
)

ORIGINS = ["http://localhost:5173", "http://localhost:5174"]


def build_app(expose_details: bool) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app, allowed_origins=ORIGINS, expose_details=expose_details)

    @app.get("/not-found")
    async def not_found():
        raise NotFoundError("Widget not found")

    @app.get("/invalid")
    async def invalid():
        raise ValidationError(["price: must be positive"])

    @app.get("/conflict")
    async def conflict():
        raise ConflictError(["email"])

    @app.get("/unauthorized")
    async def unauthorized():
        raise UnauthorizedError()

    @app.get("/expired")
    async def expired():
        raise TokenExpiredError()

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database exploded")

    return app


def make_client(expose_details: bool = False) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=build_app(expose_details), raise_app_exceptions=False)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


@pytest.mark.parametrize(
    "path, status, body",
    [
        ("/not-found", 404, {"message": "Widget not found"}),
        ("/invalid", 400, {"message": "Validation Error", "errors": ["price: must be positive"]}),
        (
            "/conflict",
            400,
            {"message": "Duplicate field value entered", "errors": ["email already exists"]},
        ),
        ("/unauthorized", 401, {"message": "Invalid token"}),
        ("/expired", 401, {"message": "Token expired"}),
        ("/missing-route", 404, {"message": "Route not found"}),
    ],
)
async def test_error_bodies(path, status, body):
    async with make_client() as client:
        response = await client.get(path)

    assert response.status_code == status
    assert response.json() == body


async def test_unhandled_error_is_generic_outside_development():
    async with make_client(expose_details=False) as client:
        response = await client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"message": "Internal Server Error"}
    assert "database exploded" not in response.text


async def test_unhandled_error_shows_details_in_development():
    async with make_client(expose_details=True) as client:
        response = await client.get("/boom")

    body = response.json()
    assert response.status_code == 500
    assert body["message"] == "Internal Server Error"
    assert body["detail"] == "database exploded"
    assert "RuntimeError" in body["stack"]


async def test_unhandled_error_carries_cors_headers():
    async with make_client() as client:
        allowed = await client.get("/boom", headers={"Origin": "http://localhost:5174"})
        foreign = await client.get("/boom", headers={"Origin": "https://evil.example"})

    assert allowed.headers["access-control-allow-origin"] == "http://localhost:5174"
    assert allowed.headers["access-control-allow-credentials"] == "true"
    assert foreign.headers["access-control-allow-origin"] == "http://localhost:5173"


async def test_method_not_allowed_keeps_message_shape():
    async with make_client() as client:
        response = await client.post("/not-found")

    assert response.status_code == 405
    assert response.json() == {"message": "Method Not Allowed"}


def test_format_validation_error():
    assert format_validation_error(
        {"loc": ("body", "items", 0, "price"), "msg": "Input should be greater than or equal to 0"}
    ) == "items.0.price: Input should be greater than or equal to 0"
    assert format_validation_error(
        {"loc": ("body",), "msg": "Field required", "type": "missing"}
    ) == "Field required"
    assert format_validation_error(
        {
            "loc": ("body", "status"),
            "msg": "Value error, Invalid status",
            "type": "value_error",
            "ctx": {"error": ValueError("Invalid status")},
        }
    ) == "status: Invalid status"
