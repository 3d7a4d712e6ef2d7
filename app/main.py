# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Talo Studio API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import StudioException, studio_exception_handler
from app.routers import health, imports, segments, fred, dashboard
from app.auth import routes as auth_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs configuration on startup and shutdown.
    """
    logger.info(f"Starting Talo Studio API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list if settings.is_production else ['*']}")
    logger.info(f"Fred model: {settings.OPENAI_MODEL}")

    yield

    logger.info("Shutting down Talo Studio API")


# Create FastAPI application
app = FastAPI(
    title="Talo Studio API",
    description="""
## Yoga Studio Customer Management API

Imports customer exports from Arketa, keeps every customer in a lifecycle
segment, tracks how segments move over time, and answers questions about
the customer base.

### How It Works

1. **Validate** - Check both CSV exports before importing
2. **Import** - Upsert customers and recalculate their segments
3. **Review Changes** - See who upgraded, downgraded or came back
4. **Ask Fred** - Ask questions in plain English

### Segments

| Segment | Rank |
|---------|------|
| prospect | 1 |
| intro_offer | 2 |
| drop_in | 3 |
| membership | 4 |

### Quick Start

```bash
# 1. Import Arketa exports
curl -X POST http://localhost:8000/api/v1/imports/arketa \\
  -H "Authorization: Bearer $TOKEN" \\
  -F "client_list=@clients.csv" \\
  -F "client_attendance=@attendance.csv"

# 2. Ask Fred
curl -X POST http://localhost:8000/api/v1/fred/ask \\
  -H "Authorization: Bearer $TOKEN" \\
  -H "Content-Type: application/json" \\
  -d '{"question": "Who is about to churn?"}'
```
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Verify Supabase JWT tokens",
        },
        {
            "name": "Imports",
            "description": "Validate and import Arketa CSV exports",
        },
        {
            "name": "Segments",
            "description": "Segment calculation, snapshots and change detection",
        },
        {
            "name": "Fred",
            "description": "Natural-language analytics assistant",
        },
        {
            "name": "Dashboard",
            "description": "Dashboard metrics and business settings",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(StudioException)
async def handle_studio_exception(request: Request, exc: StudioException):
    """Handle custom Studio exceptions."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}")
    return await studio_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# CSV import endpoints
app.include_router(
    imports.router,
    prefix="/api/v1/imports",
    tags=["Imports"]
)

# Segment endpoints
app.include_router(
    segments.router,
    prefix="/api/v1/segments",
    tags=["Segments"]
)

# Fred assistant endpoints
app.include_router(
    fred.router,
    prefix="/api/v1/fred",
    tags=["Fred"]
)

# Dashboard and settings endpoints
app.include_router(
    dashboard.router,
    prefix="/api/v1",
    tags=["Dashboard"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Talo Studio API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
