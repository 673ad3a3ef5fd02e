"""
FastAPI Application Entry Point

FoodExpress Ordering API - restaurants, menus, user profiles and orders
for the FoodExpress web frontend.

Endpoints:
    - /api/restaurants: Restaurant listing and management
    - /api/menu: Menu items
    - /api/users: User profiles and saved addresses
    - /api/orders: Checkout, order tracking and status updates
    - GET /health: System health check
"""

import asyncio
import logging
import sys
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

# Windows-specific event loop policy (psycopg async needs a selector loop)
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from app.core.config import get_settings, setup_logging
from app.core.errors import register_exception_handlers
from app.database import engine, get_db, init_db
from app.routes import menu, orders, restaurants, users

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)
access_logger = logging.getLogger("app.access")

# Computed once; shared by the CORS middleware and the error handlers
ALLOWED_ORIGINS = settings.cors_allowed_origins

STARTED_AT = time.monotonic()


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info(f"   CORS origins: {ALLOWED_ORIGINS}")
    logger.info(f"   DB pool: {settings.db_pool_size} (+{settings.db_max_overflow} overflow)")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Food ordering backend: restaurants, menus, user profiles and order tracking.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """One access-log line per request."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    access_logger.info(
        f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms"
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(
    app,
    allowed_origins=ALLOWED_ORIGINS,
    expose_details=settings.is_development,
)

app.include_router(restaurants.router)
app.include_router(menu.router)
app.include_router(users.router)
app.include_router(orders.router)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get("/health", tags=["Health"], summary="System Health Check")
async def health_check(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """Report database connectivity; 503 when the database is unreachable."""
    db_connected = True
    try:
        await db.execute(select(1))
    except Exception as e:
        db_connected = False
        logger.error(f"Database health check failed: {e}")

    return JSONResponse(
        status_code=200 if db_connected else 503,
        content={
            "status": "ok" if db_connected else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - STARTED_AT, 1),
            "database": {"status": "connected" if db_connected else "disconnected"},
            "environment": settings.env_mode.value,
        },
    )


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run("app.main:app", host=settings.api_host, port=settings.api_port)
