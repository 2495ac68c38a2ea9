"""FastAPI application entrypoint — lifespan, routers, middleware."""

import asyncio
import contextlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from farmsync import __version__
from farmsync.config import RemoteBackend, Settings, get_settings
from farmsync.database import async_session_factory, engine
from farmsync.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from farmsync.remote.base import RemoteClient
from farmsync.remote.rest_client import RestRemoteClient
from farmsync.remote.sql_client import SqlRemoteClient
from farmsync.routes import areas, machinery, operations, products, seasons, sync
from farmsync.services.connectivity import ConnectivityMonitor
from farmsync.services.events import EventBus
from farmsync.services.farm_app import FarmApp
from farmsync.services.mirror_store import MirrorStore

logger = structlog.get_logger("farmsync")


def build_remote_client(settings: Settings) -> RemoteClient:
    """Remote store transport selected by ``REMOTE_BACKEND``."""
    if settings.remote_backend == RemoteBackend.rest:
        return RestRemoteClient(
            settings.remote_rest_url,
            settings.remote_api_key,
            settings.remote_access_token,
        )
    return SqlRemoteClient(async_session_factory, user_id=settings.acting_user_id or None)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Connect to Redis (local mirror + event channel)
      3. Build the remote transport and the farm facade
      4. Load every collection, then start the optional connectivity probe

    Shutdown:
      1. Stop the probe and any background sync
      2. Close the remote transport and the Redis connection pool
      3. Dispose SQLAlchemy engine
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "farmsync_starting",
        log_level=settings.log_level,
        remote_backend=settings.remote_backend.value,
    )

    redis: Redis | None = None
    remote: RemoteClient | None = None
    probe_client: httpx.AsyncClient | None = None
    probe_task: asyncio.Task[None] | None = None
    try:
        redis = Redis.from_url(settings.redis_url, decode_responses=True)
        await redis.ping()
        app.state.redis = redis

        events = EventBus(redis)
        connectivity = ConnectivityMonitor(events)
        remote = build_remote_client(settings)
        farm = FarmApp(remote, MirrorStore(redis, settings.mirror_key_prefix), connectivity, events)
        app.state.connectivity = connectivity
        app.state.farm_app = farm

        await farm.start()

        if settings.connectivity_probe_url:
            probe_client = httpx.AsyncClient()
            probe_task = asyncio.create_task(connectivity.run_probe_loop(probe_client))
    except Exception as exc:
        logger.exception("startup_failure", error=str(exc))
        raise

    yield

    logger.info("farmsync_shutting_down")
    if probe_task is not None:
        probe_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await probe_task
    if probe_client is not None:
        await probe_client.aclose()
    await app.state.farm_app.close()
    if isinstance(remote, RestRemoteClient):
        await remote.aclose()
    if redis is not None:
        await redis.aclose()
    await engine.dispose()


app = FastAPI(
    title="FarmSync API",
    description=(
        "Offline-first farm management core: mirrored areas, seasons, operations, "
        "inventory and machinery, with a stock ledger and reconciliation against "
        "the remote store when connectivity returns."
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware ──────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, object]:
    """Liveness plus the current connectivity state."""
    connectivity = getattr(app.state, "connectivity", None)
    return {
        "status": "ok",
        "service": "farmsync",
        "version": __version__,
        "online": connectivity.is_online if connectivity is not None else None,
    }


# ── Router registration ────────────────────────────────────────────────────
app.include_router(areas.router, prefix="/api/v1")
app.include_router(seasons.router, prefix="/api/v1")
app.include_router(operations.router, prefix="/api/v1")
app.include_router(products.router, prefix="/api/v1")
app.include_router(machinery.router, prefix="/api/v1")
app.include_router(sync.router, prefix="/api/v1")
