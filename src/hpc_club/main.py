"""FastAPI application entry point."""

import logging
import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from hpc_club.api import auth, billing, errors, flashcards, notes, planner, profile, session, simulados, tutors
from hpc_club.api.deps import auth_listeners
from hpc_club.config import get_settings
from hpc_club.exceptions import HPCError, ValidationFailed
from hpc_club.models.user import User

# Configure structlog based on environment
is_production = os.getenv("ENV", "development").lower() == "production"

if is_production:
    # Production: JSON format for machine parsing
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
else:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

logger = structlog.get_logger()


async def log_auth_event(event: str, user: User | None) -> None:
    logger.info("auth_state_changed", auth_event=event, user_id=user.id if user else None)


auth_listeners.append(log_auth_event)

app = FastAPI(title="HPC - High Performance Club", version="0.1.0")
_allowed_origins_env = os.getenv(
    "ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:8000,http://127.0.0.1:8000"
)
allowed_origins = [o.strip() for o in _allowed_origins_env.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (session, auth, planner, errors, simulados, notes, flashcards, tutors, billing, profile):
    app.include_router(module.router)


@app.exception_handler(HPCError)
async def hpc_error_handler(request: Request, exc: HPCError) -> JSONResponse:
    if isinstance(exc, ValidationFailed):
        detail = [{"field": exc.field, "message": exc.message}]
    else:
        detail = exc.message
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, status=exc.status_code, error=exc.message)
    return JSONResponse({"detail": detail}, status_code=exc.status_code)


@app.exception_handler(ValidationError)
async def model_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    detail = [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse({"detail": detail}, status_code=422)


def main() -> None:
    """Run the application."""
    settings = get_settings()
    uvicorn.run(
        "hpc_club.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
