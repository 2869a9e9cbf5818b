# app/server.py
"""
Process entry point.

Runs the API under uvicorn. SIGINT/SIGTERM stop new connections and give
in-flight requests SHUTDOWN_TIMEOUT seconds before they are cut off.
Faults that escape request handling (uncaught exceptions, failed
background tasks) are logged and end the process with status 1.
"""
from __future__ import annotations

import asyncio
import signal
import socket
import sys
from types import FrameType, TracebackType

import uvicorn
from loguru import logger

from app.core.config import Settings, get_settings
from app.core.logging import setup_logging


def is_port_available(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


def _log_uncaught(exc_type: type[BaseException], exc: BaseException, tb: TracebackType | None) -> None:
    logger.opt(exception=(exc_type, exc, tb)).critical("Uncaught exception")


class HelpdeskServer(uvicorn.Server):
    """uvicorn server that remembers whether shutdown had to cut requests off."""

    forced_shutdown = False

    async def _wait_tasks_to_complete(self) -> None:
        # cancelled by uvicorn once timeout_graceful_shutdown runs out
        try:
            await super()._wait_tasks_to_complete()
        except asyncio.CancelledError:
            self.forced_shutdown = True
            raise


class _Supervisor:
    def __init__(self, server: HelpdeskServer) -> None:
        self.server = server
        self.failed = False
        self.received: list[str] = []

    def on_loop_fault(self, loop: asyncio.AbstractEventLoop, context: dict) -> None:
        logger.opt(exception=context.get("exception")).critical("Unhandled async fault: {}", context.get("message"))
        self.failed = True
        self.server.should_exit = True

    def on_signal(self, signum: int, frame: FrameType | None) -> None:
        # uvicorn re-raises the signal it handled once serve() returns
        self.received.append(signal.Signals(signum).name)

    async def serve(self) -> None:
        asyncio.get_running_loop().set_exception_handler(self.on_loop_fault)
        await self.server.serve()


def build_server(settings: Settings) -> HelpdeskServer:
    config = uvicorn.Config(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        timeout_graceful_shutdown=settings.SHUTDOWN_TIMEOUT,
        log_config=None,
    )
    return HelpdeskServer(config)


def main() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    sys.excepthook = _log_uncaught

    if not is_port_available(settings.HOST, settings.PORT):
        logger.error("Port {} is already in use", settings.PORT)
        sys.exit(1)

    logger.info("{} starting on port {}", settings.APP_NAME, settings.PORT)
    logger.info("Health check: http://localhost:{}/api/health", settings.PORT)
    logger.info("Tickets endpoint: http://localhost:{}/api/tickets", settings.PORT)

    supervisor = _Supervisor(build_server(settings))
    previous = {sig: signal.signal(sig, supervisor.on_signal) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        asyncio.run(supervisor.serve())
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    if supervisor.received:
        logger.info("Received {}, shut down", ", ".join(supervisor.received))
    if supervisor.server.forced_shutdown:
        logger.error("Forcing shutdown after {}s timeout", settings.SHUTDOWN_TIMEOUT)
        sys.exit(1)
    if supervisor.failed:
        sys.exit(1)
    logger.info("Server closed")


if __name__ == "__main__":
    main()
