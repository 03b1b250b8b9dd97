"""
FastAPI application factory.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import get_settings
from .core.redis import close_redis
from .core.redaction import install_redaction
from .api.router import router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Meetbot",
        description="Conversational assistant for Zoom meetings, recordings and users",
        version="1.0.0",
        docs_url="/docs" if settings.env == "development" else None,
        redoc_url="/redoc" if settings.env == "development" else None,
    )

    # ── CORS ─────────────────────────────────────────────────────
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Startup ──────────────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup():
        logging.basicConfig(
            level=getattr(logging, settings.log_level.upper(), logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        install_redaction()
        logger.info("Starting Meetbot (env=%s)", settings.env)

        # Log feature flag state
        from .core.flags import get_flags
        flags = get_flags()
        logger.info(
            "Flags: auth=%s zoom=%s redis=%s sweeper=%s",
            flags.use_auth, flags.use_zoom, flags.use_redis, flags.enable_session_sweeper,
        )

        # Build the dialogue engine and its handler registry
        from .orchestrator.orchestrator import get_engine
        engine = get_engine()
        logger.info("Handlers: %s", ", ".join(i.name for i in engine.registry.get_intents()))

        if flags.enable_session_sweeper:
            from .services.sweeper import SessionSweeper
            app.state.sweeper = SessionSweeper(engine.store, settings.sweep_interval_seconds)
            app.state.sweeper.start()

        logger.info("Meetbot is ready")

    # ── Shutdown ─────────────────────────────────────────────────
    @app.on_event("shutdown")
    async def on_shutdown():
        sweeper = getattr(app.state, "sweeper", None)
        if sweeper is not None:
            await sweeper.stop()
        from .services.zoom import close_client
        await close_client()
        await close_redis()
        logger.info("Meetbot shut down")

    # ── Routes ───────────────────────────────────────────────────
    app.include_router(router)

    return app
