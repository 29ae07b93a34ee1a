from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.middleware.base import BaseHTTPMiddleware
import uvicorn
from app.auth.api.routes import auth_router
from app.auth.service.auth_service import AuthService
from app.chat.api.route import chat_router
from app.chat.repository.chat_repository import ChatRepository
from app.chat.service.registry import ChatRegistry
from app.core.config import settings
from app.core.logger import get_logger
from app.llm.service.image_loader import ImageLoader
from app.llm.service.provider.gemini import GeminiProvider
from app.speech.service.audio_store import AudioStore
from app.speech.service.elevenlabs import ElevenLabsProvider
from app.speech.service.player import CommandAudioPlayer, NullAudioPlayer
from app.user.api.routes import user_router
from app.user.repository.user_repository import UserRepository
from app.user.service.user_service import UserService
from pkg.auth_token_client.client import TokenClient
from pkg.db_util.postgres_conn import PostgresConnection
from pkg.db_util.types import PostgresConfig
from pkg.supabase_auth.client import SupabaseAuthClient
from dotenv import load_dotenv
import asyncio
import os
import sys

# Load .env so settings and os.getenv pick up local values
load_dotenv()

logger = get_logger("doktorai-chat")

SERVICE_NAME = "doktorai-chat"
PUBLIC_PATHS = ["/health", "/", "/docs", "/openapi.json"]


def _mask(var: str, value: str) -> str:
    if any(secret in var for secret in ("PASSWORD", "KEY", "SECRET")):
        return f"***MASKED*** (length: {len(value)})"
    return value


def _set_degraded(app: FastAPI, error: str) -> None:
    app.state.logger = logger
    app.state.postgres_conn = None
    app.state.chat_registry = None
    app.state.startup_complete = False
    app.state.startup_error = error


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager - ensures startup completes before accepting requests"""
    logger.info(f"{settings.APP_NAME} starting up...")
    logger.info(f"Python: {sys.version}")
    logger.info(f"Working directory: {os.getcwd()}")

    logger.info("=== Environment Variables Check ===")
    for var in ["SUPABASE_URL", "SUPABASE_ANON_KEY", "POSTGRES_HOST", "POSTGRES_USER", "POSTGRES_PASSWORD",
                "POSTGRES_DB", "GEMINI_API_KEY", "ELEVENLABS_API_KEY"]:
        value = getattr(settings, var, None)
        if value:
            logger.info(f"{var}: {_mask(var, str(value))}")
        else:
            logger.warning(f"{var}: NOT SET or EMPTY")
    logger.info("===================================")

    required = {
        "SUPABASE_URL": (settings.SUPABASE_URL or "").strip(),
        "SUPABASE_ANON_KEY": (settings.SUPABASE_ANON_KEY or "").strip(),
        "POSTGRES_HOST": (settings.POSTGRES_HOST or "").strip(),
        "POSTGRES_USER": (settings.POSTGRES_USER or "").strip(),
        "POSTGRES_PASSWORD": (settings.POSTGRES_PASSWORD or "").strip(),
    }
    missing_vars = [key for key, value in required.items() if not value]
    if missing_vars:
        error_msg = f"Missing required environment variables: {', '.join(missing_vars)}"
        logger.error(error_msg)
        logger.error("Application will start in degraded mode")
        _set_degraded(app, error_msg)
        yield
        return

    postgres_conn = None
    try:
        postgres_config = PostgresConfig(
            host=required["POSTGRES_HOST"],
            port=settings.POSTGRES_PORT,
            username=required["POSTGRES_USER"],
            password=required["POSTGRES_PASSWORD"],
            database=settings.POSTGRES_DB,
        )
        postgres_conn = PostgresConnection(postgres_config, logger)

        logger.info("Initializing database engine with retry logic...")
        try:
            await asyncio.wait_for(postgres_conn.get_engine(max_retries=5, initial_delay=2.0), timeout=60.0)
            logger.info("✓ Postgres engine initialized and cached during startup.")
        except asyncio.TimeoutError:
            logger.error("Database connection timed out after 60 seconds")
            raise ConnectionError("Database connection timeout - check network/credentials")

        # Tables are provisioned by scripts/create_tables.py, not at startup
        logger.info("Tables needed: users, chat_sessions, chat_messages")

        # Identity
        user_repo = UserRepository(postgres_conn.get_session, logger)
        user_service = UserService(user_repo, logger)
        auth_client = SupabaseAuthClient(logger, url=required["SUPABASE_URL"], anon_key=required["SUPABASE_ANON_KEY"])
        token_client = None
        if settings.SUPABASE_JWT_SECRET:
            token_client = TokenClient(settings.SUPABASE_JWT_SECRET)
        else:
            logger.info("SUPABASE_JWT_SECRET not set; access tokens will be checked against Supabase")
        auth_service = AuthService(auth_client, user_service, logger, token_client)

        # Conversation pipeline
        chat_repo = ChatRepository(postgres_conn)
        generative = GeminiProvider()
        if not generative.is_enabled():
            logger.warning("GEMINI_API_KEY not set; every reply will be the fallback message")
        audio_store = AudioStore()
        audio_store.prune()
        speech = ElevenLabsProvider(audio_store)
        if settings.AUDIO_PLAYER_COMMAND:
            audio_player = CommandAudioPlayer(settings.AUDIO_PLAYER_COMMAND)
        else:
            audio_player = NullAudioPlayer()
        chat_registry = ChatRegistry(chat_repo, generative, speech, ImageLoader(), audio_player, logger)

        app.state.logger = logger
        app.state.postgres_conn = postgres_conn
        app.state.chat_repo = chat_repo
        app.state.user_service = user_service
        app.state.auth_service = auth_service
        app.state.generative = generative
        app.state.speech = speech
        app.state.audio_store = audio_store
        app.state.chat_registry = chat_registry
        app.state.startup_complete = True
        app.state.startup_error = None

        logger.info("✓ Startup complete - application is ready!")

    except Exception as e:
        logger.error(f"✗ Startup failed: {e}", exc_info=True)
        logger.error("Application will start in degraded mode - check logs above")
        _set_degraded(app, str(e))

    yield

    logger.info(f"{settings.APP_NAME} shutting down...")
    if postgres_conn is not None:
        await postgres_conn.close_engine()


app = FastAPI(
    title=settings.APP_NAME,
    description="Herbal remedy assistant: chat sessions, moderated AI replies and spoken answers",
    version="1.0.0",
    lifespan=lifespan,
)


class StartupCheckMiddleware(BaseHTTPMiddleware):
    """Rejects API requests until startup has completed without errors."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        if not getattr(request.app.state, "startup_complete", False):
            startup_error = getattr(request.app.state, "startup_error", None)
            message = (
                f"Service initialization failed: {startup_error}"
                if startup_error
                else "Service is starting up. Please retry in a few seconds."
            )
            return JSONResponse(status_code=503, content={"status": False, "message": message})

        return await call_next(request)


app.add_middleware(StartupCheckMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # adjust in prod
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Convert HTTPException to standardized error format"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": False, "message": exc.detail},
        headers=exc.headers,
    )


app.include_router(auth_router)
app.include_router(user_router)
app.include_router(chat_router)


@app.get("/health")
async def health():
    """Service status; always 200 so platform health checks pass during startup"""
    startup_complete = getattr(app.state, "startup_complete", False)
    startup_error = getattr(app.state, "startup_error", None)

    if not startup_complete:
        return JSONResponse(
            status_code=200,
            content={
                "status": "starting" if startup_error is None else "degraded",
                "service": SERVICE_NAME,
                "message": startup_error or "Application is still starting up...",
                "startup_complete": False,
            },
        )

    checks = {
        "database": "✓ connected" if getattr(app.state, "postgres_conn", None) else "✗ not_initialized",
        "auth_service": "✓ ready" if getattr(app.state, "auth_service", None) else "✗ not_ready",
        "chat_registry": "✓ ready" if getattr(app.state, "chat_registry", None) else "✗ not_ready",
        # Optional providers: their absence degrades replies, not the service
        "gemini": "✓ configured" if app.state.generative.is_enabled() else "- not_configured",
        "elevenlabs": "✓ configured" if app.state.speech.is_enabled() else "- not_configured",
    }
    all_healthy = all(not value.startswith("✗") for value in checks.values())

    return {
        "status": "ok" if all_healthy else "degraded",
        "service": SERVICE_NAME,
        "checks": checks,
        "startup_complete": True,
    }


@app.get("/")
async def root():
    """Root endpoint - simple check that app is running"""
    return {
        "service": SERVICE_NAME,
        "version": "1.0.0",
        "status": "running",
        "health_check": "/health",
    }


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
