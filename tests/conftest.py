from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from apibench.backends import Backends, build_backends
from apibench.config import EndpointConfig

Responder = Callable[[httpx.Request], httpx.Response]


class FakeServer:
    """In-process stand-in for the three backends, keyed by method and path."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Responder] = {}
        self.requests: list[httpx.Request] = []

    def route(self, method: str, path: str, responder: Responder) -> None:
        self.routes[(method, path)] = responder

    def respond(self, method: str, path: str, status: int = 200, **kwargs) -> None:
        self.route(method, path, lambda request: httpx.Response(status, **kwargs))

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self.routes.get((request.method, request.url.path))
        if responder is None:
            return httpx.Response(404)
        return responder(request)


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    return tmp_path / "media"


@pytest_asyncio.fixture
async def backends_for(media_dir: Path):
    clients: list[httpx.AsyncClient] = []

    def factory(fake: FakeServer, *, rpc=None, **config_overrides) -> Backends:
        http = httpx.AsyncClient(transport=httpx.MockTransport(fake.handle))
        clients.append(http)
        config = EndpointConfig(media_dir=media_dir, **config_overrides)
        return build_backends(http, config, rpc)

    yield factory

    for http in clients:
        await http.aclose()
