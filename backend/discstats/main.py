from contextlib import asynccontextmanager
import logging
import os
from typing import Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
import sentry_sdk

from .routers import games, players, points, teams
from .exceptions import DomainException, ProblemDetail
from .config import (
    ALLOWED_ORIGINS,
    API_PREFIX,
    CREATE_SCHEMA_ON_STARTUP,
    SENTRY_DSN,
    parse_sample_rate,
)
from .db import create_schema

logger = logging.getLogger(__name__)


def _init_sentry() -> None:
    """Enable error reporting when ``SENTRY_DSN`` is configured."""

    if not SENTRY_DSN:
        logger.info("SENTRY_DSN not provided; error reporting disabled.")
        return

    environment = (os.getenv("SENTRY_ENVIRONMENT") or "").strip() or None
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[FastApiIntegration()],
        environment=environment,
        traces_sample_rate=parse_sample_rate("SENTRY_TRACES_SAMPLE_RATE"),
        profiles_sample_rate=parse_sample_rate("SENTRY_PROFILES_SAMPLE_RATE"),
    )
    logger.info("Sentry error reporting enabled (environment=%s)", environment or "default")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Serving API under %s/v0 for origins %s", API_PREFIX, ALLOWED_ORIGINS)
    if CREATE_SCHEMA_ON_STARTUP:
        await create_schema()
        logger.info("Database schema ready")
    yield


_init_sentry()

app = FastAPI(
    title="Disc Stats API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# The scorekeeping UI runs from the Expo dev server or a web build.
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)


# -----------------------------------------------------------------------------
# Error handling
# -----------------------------------------------------------------------------
def _problem_response(
    request: Optional[Request],
    status: int,
    title: str,
    code: str,
    detail: Optional[str] = None,
    type_: str = "about:blank",
) -> JSONResponse:
    problem = ProblemDetail(
        type=type_,
        title=title,
        detail=detail,
        status=status,
        instance=str(request.url.path) if request is not None else None,
        code=code,
    )
    return JSONResponse(
        status_code=status,
        content=problem.model_dump(),
        media_type="application/problem+json",
    )


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.code, request.url.path, exc.detail)
    return _problem_response(
        request, exc.status_code, exc.title, exc.code, exc.detail, exc.type
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    code = getattr(exc, "code", f"http_{exc.status_code}")
    return _problem_response(request, exc.status_code, detail, code, detail)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", exc_info=(type(exc), exc, exc.__traceback__))
    return _problem_response(
        request, 500, "Internal Server Error", "internal_server_error", str(exc)
    )


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------
@app.get("/healthz", tags=["health"])  # Unprefixed for uptime checks
def root_healthz():
    return {"status": "ok"}


api_router = APIRouter(prefix=API_PREFIX)


@api_router.get("/healthz", tags=["health"])
def api_healthz():
    return {"status": "ok"}


v0_router = APIRouter(prefix="/v0")
for module in (teams, players, games, points):
    v0_router.include_router(module.router)

api_router.include_router(v0_router)
app.include_router(api_router)
