"""Round-trip timing and the HTTP calls shared by all adapters."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from apibench.errors import BackendConnectionError, HttpStatusError

logger = logging.getLogger(__name__)


class Stopwatch:
    """Accumulates wall time spent inside ``with`` blocks, in milliseconds.

    One instance per call; several blocks add up, so a request that needs
    a follow-up fetch reports both round trips and nothing in between.
    """

    def __init__(self) -> None:
        self.elapsed_ms = 0.0
        self._started: float | None = None

    def __enter__(self) -> "Stopwatch":
        self._started = time.perf_counter()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._started is not None:
            self.elapsed_ms += (time.perf_counter() - self._started) * 1000.0
            self._started = None


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    transport: str,
    stopwatch: Stopwatch | None = None,
    **kwargs: Any,
) -> httpx.Response:
    """Issue one request with the body fully read, timing only the round trip."""

    if stopwatch is None:
        stopwatch = Stopwatch()
    try:
        with stopwatch:
            response = await client.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        raise BackendConnectionError(f"{transport} request to {url} failed: {exc}") from exc

    logger.debug(
        "%s %s %s -> %d in %.2f ms", transport, method, url, response.status_code, stopwatch.elapsed_ms
    )
    if not response.is_success:
        raise HttpStatusError(transport, response.status_code)
    return response
