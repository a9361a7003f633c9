"""Shared fixtures."""
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from flow_core.services.config_service import clear_config_cache

EXAMPLES_DIR = Path(__file__).resolve().parents[1] / "examples" / "workflows"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run every test without ambient config files or FLOW_* variables."""
    for name in ("FLOW_CONFIG_PATH", "FLOW_MAX_EXECUTION_TIME", "FLOW_HTTP_TIMEOUT", "FLOW_CAPABILITY_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def examples_dir() -> Path:
    return EXAMPLES_DIR


async def _echo(request: web.Request) -> web.Response:
    body = await request.text()
    return web.json_response({
        "method": request.method,
        "path": request.path,
        "query": dict(request.query),
        "body": body,
        "content_type": request.headers.get("Content-Type"),
        "x_token": request.headers.get("X-Token"),
    })


async def _plain(request: web.Request) -> web.Response:
    return web.Response(text="just text")


async def _missing(request: web.Request) -> web.Response:
    return web.json_response({"error": "not here"}, status=404)


async def _broken(request: web.Request) -> web.Response:
    return web.json_response({"message": "engine exploded"}, status=500)


@pytest_asyncio.fixture
async def http_server():
    """Small aiohttp server: /echo (any method), /plain, /missing, /broken."""
    app = web.Application()
    app.router.add_route("*", "/echo", _echo)
    app.router.add_route("*", "/echo/{tail:.*}", _echo)
    app.router.add_get("/plain", _plain)
    app.router.add_get("/missing", _missing)
    app.router.add_route("*", "/broken", _broken)

    server = TestServer(app)
    await server.start_server()
    yield server
    await server.close()
