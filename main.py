import inspect
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from dal.config_store import ConfigStore
from routes.asset_route import router as asset_router
from routes.onboarding_route import router as onboarding_router
from routes.page_route import router as page_router
from routes.status_route import router as status_router
from services.asset_processor import AssetProcessor
from services.openai.ai_agent import AIAgent
from services.openai.cost_estimator import CostEstimator
from services.rate_limiter import RateLimiter
from services.session_manager import SessionManager
from services.static_generator import StaticGenerator
from services.template_generator import TemplateGenerator
from services.version_manager import VersionManager
from utils.logging_config import configure_logging, correlation_id_middleware
from utils.settings import AppSettings

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def build_openai_client() -> AsyncOpenAI:
    openai_api_key = os.getenv("OPENAI_API_KEY")
    if not openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is not set")

    try:
        return AsyncOpenAI()
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc


async def close_openai_client(client) -> None:
    """Close the client if it exposes a close/aclose method."""
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
    except Exception:
        # shutdown errors must not mask the reason the app is stopping
        LOGGER.warning("Failed to close OpenAI client", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager that builds every component once and attaches it to `app.state`:
      - config store, version manager, asset processor, static and legal page generators
      - the OpenAI async client and the AI agent
      - the rate limiter (admission tick started here)
      - the session manager (drafts restored, cleanup job started)
    """
    settings: AppSettings = app.state.settings
    openai_client = app.state.openai_client or build_openai_client()
    app.state.openai_client = openai_client

    config_store = ConfigStore(settings.config_dir)
    rate_limiter = RateLimiter(settings.max_requests_per_minute, settings.monthly_token_threshold)
    ai_agent = AIAgent(
        openai_client,
        model=settings.openai_model,
        max_output_tokens=settings.ai_max_output_tokens,
    )
    session_manager = SessionManager(config_store, rate_limiter=rate_limiter, ai_agent=ai_agent)

    app.state.config_store = config_store
    app.state.rate_limiter = rate_limiter
    app.state.ai_agent = ai_agent
    app.state.session_manager = session_manager
    app.state.version_manager = VersionManager(settings.versions_dir, config_store, settings.max_versions)
    app.state.asset_processor = AssetProcessor(
        settings.assets_dir / "uploads",
        settings.assets_dir / "processed",
        settings.public_dir,
    )
    app.state.static_generator = StaticGenerator(settings.public_dir, config_store)
    app.state.template_generator = TemplateGenerator()
    app.state.cost_estimator = CostEstimator()
    app.state.started_at = time.monotonic()

    rate_limiter.start()
    await session_manager.restore_sessions()
    session_manager.start_cleanup_job(settings.session_cleanup_interval)
    LOGGER.info("Site builder started (config in %s)", settings.config_dir)

    try:
        yield
    finally:
        session_manager.stop_cleanup_job()
        rate_limiter.stop()
        await close_openai_client(openai_client)
        LOGGER.info("Site builder stopped")


def create_app(settings: Optional[AppSettings] = None, openai_client=None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    `openai_client` replaces the client built from OPENAI_API_KEY (used by tests).
    """
    settings = settings or AppSettings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.openai_client = openai_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(correlation_id_middleware)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports which components are available.
        """
        has_store = hasattr(request.app.state, "config_store")
        has_openai = getattr(request.app.state, "openai_client", None) is not None
        return {"ok": True, "config_store_ready": has_store, "openai_available": has_openai}

    # Register application routers
    app.include_router(onboarding_router)
    app.include_router(page_router)
    app.include_router(asset_router)
    app.include_router(status_router)

    # Serve uploaded assets and the generated site last so API routes win.
    settings.assets_dir.mkdir(parents=True, exist_ok=True)
    settings.public_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/assets", StaticFiles(directory=settings.assets_dir), name="assets")
    app.mount("/", StaticFiles(directory=settings.public_dir, html=True), name="public")

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
