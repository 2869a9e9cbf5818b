# app/main.py
import asyncio
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from loguru import logger

from app.core.config import Settings, get_settings
from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging
from app.dashboard.routes import router as dashboard_router
from app.ticket.routes import router as ticket_router
from app.ticket.services import purge_expired
from app.ticket.store import TicketStore


async def _retention_sweep(store: TicketStore, interval: float, retention_days: int) -> None:
    while True:
        await asyncio.sleep(interval)
        purge_expired(store, retention_days)


def _report_task_failure(task: asyncio.Task) -> None:
    if task.cancelled() or task.exception() is None:
        return
    task.get_loop().call_exception_handler(
        {"message": f"Background task {task.get_name()} failed", "exception": task.exception(), "task": task}
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    sweeper = None
    if settings.CLEANUP_INTERVAL_SECONDS > 0:
        sweeper = asyncio.create_task(
            _retention_sweep(app.state.ticket_store, settings.CLEANUP_INTERVAL_SECONDS, settings.TICKET_RETENTION_DAYS),
            name="retention-sweep",
        )
        sweeper.add_done_callback(_report_task_failure)
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass


def create_app(settings: Settings | None = None, store: TicketStore | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESC,
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.ticket_store = store or TicketStore()
    app.state.started_at = time.monotonic()
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("{} {}", request.method, request.url.path)
        return await call_next(request)

    register_exception_handlers(app, settings)

    # Routers
    app.include_router(ticket_router)
    app.include_router(dashboard_router)

    @app.get("/", tags=["Health"])
    def root():
        return {
            "message": f"{settings.APP_NAME} is running",
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/health", tags=["Health"], response_class=PlainTextResponse)
    def health():
        return "OK"

    @app.get("/api/health", tags=["Health"])
    def api_health(request: Request):
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - request.app.state.started_at, 3),
            "tickets": request.app.state.ticket_store.count(),
        }

    return app


app = create_app()
