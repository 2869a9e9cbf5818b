# tests/test_lifecycle.py
import asyncio
import os
import signal
import socket
import subprocess
import sys
import threading
import time
from pathlib import Path

import httpx
import pytest

from app.main import _retention_sweep
from app.server import build_server, is_port_available
from app.core.config import Settings
from app.ticket import services as ticket_service

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def test_retention_sweep_purges_old_tickets(store):
    # store clock sits in 2024, well outside a 30 day window
    old = ticket_service.create_ticket(store, name="Budi", division="IT", description="Old")

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(asyncio.wait_for(_retention_sweep(store, 0.01, 30), timeout=0.1))

    assert store.get(old.id) is None


def test_port_check_detects_bound_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        sock.listen()
        port = sock.getsockname()[1]
        assert not is_port_available("127.0.0.1", port)


def test_server_uses_shutdown_grace_period():
    settings = Settings(PORT=4321, SHUTDOWN_TIMEOUT=5)
    server = build_server(settings)
    assert server.config.port == 4321
    assert server.config.timeout_graceful_shutdown == 5


SERVE_WITH_SLOW_ROUTE = """
import asyncio
from app.main import app

@app.get("/slow")
async def slow():
    await asyncio.sleep(30)
    return {"done": True}

from app.server import main
main()
"""


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _start_server(port: int) -> subprocess.Popen:
    env = {
        **os.environ,
        "HOST": "127.0.0.1",
        "PORT": str(port),
        "SHUTDOWN_TIMEOUT": "1",
        "CLEANUP_INTERVAL_SECONDS": "0",
        "PYTHONPATH": str(PROJECT_ROOT),
    }
    proc = subprocess.Popen([sys.executable, "-c", SERVE_WITH_SLOW_ROUTE], cwd=PROJECT_ROOT, env=env)
    deadline = time.monotonic() + 15
    while time.monotonic() < deadline:
        try:
            if httpx.get(f"http://127.0.0.1:{port}/health", timeout=1).status_code == 200:
                return proc
        except httpx.HTTPError:
            time.sleep(0.1)
    proc.kill()
    pytest.fail("server did not start")


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
def test_clean_shutdown_exits_zero():
    proc = _start_server(_free_port())
    proc.send_signal(signal.SIGTERM)
    assert proc.wait(timeout=15) == 0


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
def test_shutdown_timeout_exits_one():
    port = _free_port()
    proc = _start_server(port)

    def hold_request():
        try:
            httpx.get(f"http://127.0.0.1:{port}/slow", timeout=20)
        except httpx.HTTPError:
            pass

    worker = threading.Thread(target=hold_request, daemon=True)
    worker.start()
    time.sleep(0.5)

    proc.send_signal(signal.SIGTERM)
    assert proc.wait(timeout=15) == 1
