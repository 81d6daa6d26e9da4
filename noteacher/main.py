"""
NOTEacher - gamified course progression service.

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from noteacher.api.errors import register_exception_handlers
from noteacher.api.middleware.request_id import RequestIdMiddleware
from noteacher.api.v1 import router as api_v1_router
from noteacher.config import get_settings
from noteacher.database import close_db, init_db, ping_db
from noteacher.logging_config import configure_logging, get_logger
from noteacher.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )
    logger.info(
        "Starting %s v%s",
        settings.project_name,
        settings.version,
        extra={"environment": settings.environment},
    )
    await init_db()

    yield

    await close_db()
    logger.info("Stopped %s", settings.project_name)


app = FastAPI(
    title=settings.project_name,
    description="""
    Course progression API.

    - **Courses**: ordered nodes, optionally grouped into levels and missions
    - **Course map**: each node is locked, current or completed for the learner
    - **Completion**: completing a node unlocks the one after it
    - **Gamification**: XP, streak and per-course completion percent
    - **Discussion**: threaded question/solution/general comments on each node

    Learners authenticate with a bearer token from the identity provider;
    course authoring needs the `admin` role.
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# add_middleware wraps, so the last one added runs first: CORS outermost
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app, settings.cors_origins, debug=settings.debug)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Liveness plus a database round-trip."""
    db_ok = await ping_db()
    return HealthResponse(
        status="ok" if db_ok else "degraded",
        version=settings.version,
        database="connected" if db_ok else "unavailable",
    )


@app.get("/", tags=["Root"])
async def root():
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {"v1": settings.api_v1_prefix},
    }


app.include_router(api_v1_router, prefix=settings.api_v1_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "noteacher.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
