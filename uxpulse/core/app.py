from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from uxpulse.api.router import api_router
from uxpulse.api.routes import telemetry
from uxpulse.core.config import AppSettings, get_settings
from uxpulse.core.database import create_engine_and_factory, init_database
from uxpulse.services.analytics import AnalyticsService
from uxpulse.services.event_store import InMemoryEventStore, SqlEventStore


logger = logging.getLogger(__name__)


def _configure_logging(level_name: str) -> None:
    """Ensure application logs propagate with the requested verbosity."""
    level = getattr(logging, level_name.upper(), logging.WARNING)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        )
    root_logger.setLevel(level)


def create_app(settings: AppSettings | None = None) -> FastAPI:
    settings = settings or get_settings()
    _configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = None
        if settings.database_url:
            engine, session_factory = create_engine_and_factory(settings.database_url)
            await init_database(engine)
            store = SqlEventStore(session_factory)
        else:
            store = InMemoryEventStore()

        analytics = AnalyticsService(
            store,
            mode=settings.aggregation_mode,
            recent_window=settings.recent_window,
        )
        await analytics.warm_up()
        app.state.analytics = analytics
        logger.info(
            "Event log ready (store=%s, mode=%s)", type(store).__name__, settings.aggregation_mode
        )
        try:
            yield
        finally:
            if engine is not None:
                await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")
    app.include_router(telemetry.router, include_in_schema=False)

    @app.get("/", tags=["health"])
    async def root() -> dict[str, str]:
        return {"service": settings.app_name, "environment": settings.app_env}

    return app
