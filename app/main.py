from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging

from app.api.router import router as api_router
from app.core.exceptions import (
    DatabaseNotConfiguredError,
    InvalidLeadDataError,
    InvalidScoringRuleError,
    InvalidThresholdsError,
    LeadNotFoundError,
    ScoringRuleNotFoundError,
    ScoringUnavailableError,
    TravelCRMError,
)
from app.core.config import settings as app_settings
from app.core.destination_catalogue import load_destination_catalogue
from app.core.rate_limit import limiter
from app.core.database import engine

# Configure logging
logging.basicConfig(level=app_settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the destination catalogue and open the shared Redis client.

    On shutdown the Redis client is closed and the engine disposed.
    """
    app.state.destination_catalogue = load_destination_catalogue(
        app_settings.DESTINATION_CATALOGUE_PATH
    )
    if engine is None:
        logger.warning("DATABASE_URL not set: database routes will answer 503")
    app.state.redis = Redis.from_url(app_settings.REDIS_URL, decode_responses=True)
    try:
        await app.state.redis.ping()
    except (RedisError, OSError):
        logger.warning("Redis unreachable at startup: rule sets load from the database")
    yield
    await app.state.redis.aclose()
    if engine is not None:
        await engine.dispose()
        logger.info("Database engine disposed")


app = FastAPI(
    title="Travel CRM Lead Scoring",
    description="Lead capture, rule-based lead scoring and priority automation",
    version="0.1.0",
    lifespan=lifespan,
)

# Attach rate limiter state so slowapi middleware can find it
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware – restricted to configured origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in app_settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


# Domain error -> (HTTP status, response ``type``)
_ERROR_RESPONSES = {
    LeadNotFoundError: (404, "lead_not_found"),
    ScoringRuleNotFoundError: (404, "scoring_rule_not_found"),
    InvalidLeadDataError: (422, "invalid_lead_data"),
    InvalidScoringRuleError: (422, "invalid_scoring_rule"),
    InvalidThresholdsError: (422, "invalid_thresholds"),
    DatabaseNotConfiguredError: (503, "database_not_configured"),
    ScoringUnavailableError: (503, "scoring_unavailable"),
}


@app.exception_handler(TravelCRMError)
async def travel_crm_error_handler(request: Request, exc: TravelCRMError):
    status_code, error_type = _ERROR_RESPONSES.get(type(exc), (400, "bad_request"))
    log = logger.error if status_code >= 500 else logger.warning
    log("%s on %s %s: %s", error_type, request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.detail, "type": error_type},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": jsonable_encoder(exc.errors()),
            "type": "validation_error",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected/unhandled exceptions.

    Returns a generic 500 response so that raw stack traces are never
    leaked to the client.
    """
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected internal error occurred. Please try again later.",
            "type": "internal_server_error",
        },
    )
