"""
FastAPI application entry point for the reminder backend.
"""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from reminder_backend.auth import router as auth_router
from reminder_backend.config import Settings, get_settings
from reminder_backend.dependencies import get_sheets_client
from reminder_backend.errors import ReminderAppError
from reminder_backend.routes import router
from reminder_backend.schemas import HealthResponse
from reminder_backend.sheet_setup import initialize_sheets, resolve_journal_sheet

logger = logging.getLogger(__name__)


def check_settings(settings: Settings) -> None:
    missing, insecure = settings.config_problems()
    if missing:
        for name in missing:
            logger.error("Missing required environment variable: %s", name)
        raise RuntimeError(
            "Missing required environment variables: " + ", ".join(missing)
        )
    for name in insecure:
        logger.warning("Using default/insecure value for %s", name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    client = get_sheets_client()
    journal = resolve_journal_sheet(
        client, settings.thoughts_sheet_name, max_retries=settings.max_retries
    )
    created = initialize_sheets(
        client,
        archive_sheet_name=settings.archive_sheet_name,
        max_retries=settings.max_retries,
    )
    if created:
        logger.info("Created sheets: %s", ", ".join(created))
    logger.info(
        "Using journal sheet %s, archive sheet %s", journal, settings.archive_sheet_name
    )
    yield


async def handle_app_error(request: Request, exc: ReminderAppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    check_settings(settings)

    app = FastAPI(title="Family Reminders Backend", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings

    session_secret = settings.session_secret
    if not settings.has_session_secret:
        session_secret = secrets.token_hex(32)
    app.add_middleware(
        SessionMiddleware,
        secret_key=session_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age_seconds,
        same_site="lax",
        https_only=settings.cookie_secure,
    )
    origins = settings.cors_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            # Browsers reject a literal "*" with credentials; echo the origin instead.
            allow_origin_regex=".*" if origins == ["*"] else None,
            allow_origins=[] if origins == ["*"] else origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(ReminderAppError, handle_app_error)
    app.include_router(auth_router, prefix=settings.api_prefix)
    app.include_router(router, prefix=settings.api_prefix)

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(
            status="OK",
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        )

    return app


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
