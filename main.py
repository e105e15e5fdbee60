import inspect
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI
from starlette.exceptions import HTTPException as StarletteHTTPException

from dal.user_dal import UserDAL
from routes.photo_route import router as photo_router
from services.errors import PhotoServiceError
from services.generation_gate import InFlightRegistry
from services.openai.image_generator import GraduationImageGenerator
from services.photo_orchestrator import PhotoOrchestrator
from utils.app_settings import AppSettings, cors_origins_from_env, load_settings
from utils.database_init import AsyncDatabaseInitializer

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the settings (from the environment unless injected)
      - the SQLite database at DATABASE_DIR/app.db
      - the OpenAI async client (unless injected)
      - the photo orchestrator wired to both
    and attach them to `app.state`.
    """
    settings: AppSettings = app.state.settings or load_settings()
    app.state.settings = settings
    logging.basicConfig(level=settings.log_level)

    db_initializer = AsyncDatabaseInitializer(
        settings.database_dir, reset=settings.reset_database_on_startup
    )
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    openai_client = app.state.openai_client
    owns_client = openai_client is None
    if owns_client:
        if not settings.openai_api_key:
            raise RuntimeError("OPENAI_API_KEY environment variable is not set")
        try:
            # No automatic retries: a failed generation is reported to the caller.
            openai_client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.openai_timeout_seconds,
                max_retries=0,
            )
        except Exception as exc:
            raise RuntimeError("Failed to initialize OpenAI Async client") from exc
        app.state.openai_client = openai_client

    generator = GraduationImageGenerator(
        openai_client,
        settings.logo_path,
        model=settings.image_model,
        timeout=settings.openai_timeout_seconds,
    )
    app.state.photo_orchestrator = PhotoOrchestrator(
        UserDAL(db_initializer),
        generator,
        settings.content_dir,
        inflight=InFlightRegistry(),
    )
    LOGGER.info("Photo service ready (database=%s)", db_initializer.db_path)

    try:
        yield
    finally:
        if owns_client:
            await _close_client(app.state.openai_client)


async def _close_client(client) -> None:
    """Gracefully close the OpenAI client if it exposes a close/aclose method."""
    if client is None:
        return
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception as exc:
        # Shutdown errors must not mask more important issues.
        LOGGER.warning("Error while closing the OpenAI client: %s", exc)


def _register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as `{"success": false, "error": <message>}`."""

    @app.exception_handler(PhotoServiceError)
    async def photo_service_error_handler(request: Request, exc: PhotoServiceError):
        if exc.status_code >= 500:
            LOGGER.error("Error in %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        missing = [".".join(str(part) for part in err.get("loc", ())[1:]) for err in exc.errors()]
        return JSONResponse(
            status_code=422,
            content={"success": False, "error": f"Invalid request fields: {', '.join(missing)}"},
        )


def create_app(
    settings: Optional[AppSettings] = None,
    openai_client: Optional[AsyncOpenAI] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        settings: Optional settings; loaded from the environment at startup when omitted.
        openai_client: Optional client to use instead of constructing one (tests inject fakes).
    """
    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.openai_client = openai_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins if settings else cors_origins_from_env(),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_exception_handlers(app)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that verifies DB initializer and OpenAI client presence.
        """
        has_db = getattr(request.app.state, "db_initializer", None) is not None
        has_openai = getattr(request.app.state, "openai_client", None) is not None
        return {"ok": True, "db_initialized": has_db, "openai_available": has_openai}

    # Register application routers
    app.include_router(photo_router)

    return app


app = create_app()
