"""
Competency Engine

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from competency.api.errors import register_exception_handlers
from competency.api.middleware.request_id import RequestIdMiddleware
from competency.api.v1 import router as api_v1_router
from competency.config import get_settings
from competency.database import close_db, init_db
from competency.logging_config import configure_logging, get_logger
from competency.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    configure_logging(
        settings.log_level,
        debug=settings.debug,
        json_output=settings.environment == "production",
    )
    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()

    yield

    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="""
    Scores radiology residents against their training milestones.

    - **Milestone levels** from decay-weighted quiz, differential, oral-board,
      report-review and faculty-assessment evidence
    - **Gap analysis** against the PGY-year expectation
    - **At-risk residents** for program directors
    - **Cohort benchmarks** as dated percentile snapshots per PGY year
    - **Case tagging** with milestone relevance for teaching cases
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# add_middleware stacks innermost-first; CORS wraps everything
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app, debug=settings.debug)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    return HealthResponse(status="ok", version=settings.version, database="connected")


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

    uvicorn.run("competency.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
