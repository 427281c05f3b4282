"""Single entry point routing a request to its transport adapter."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from apibench.backends import Backends
from apibench.graphql import fetch_graphql
from apibench.grpcweb import fetch_grpc_web
from apibench.input import parse_request
from apibench.models import LatencySummary, RequestSpec, ResultEnvelope, ServiceKind, TransportKind
from apibench.rest import fetch_rest

logger = logging.getLogger(__name__)

Adapter = Callable[[RequestSpec, Backends], Awaitable[ResultEnvelope]]

ADAPTERS: dict[TransportKind, Adapter] = {
    TransportKind.REST: fetch_rest,
    TransportKind.GRAPHQL: fetch_graphql,
    TransportKind.GRPC_WEB: fetch_grpc_web,
}


async def fetch_service(
    transport: str | TransportKind,
    service: str | ServiceKind,
    size: str | None,
    backends: Backends,
) -> ResultEnvelope:
    """Fetch one result; unknown transports fail before any adapter runs."""

    request = parse_request(transport, service, size)
    adapter = ADAPTERS[request.transport]
    logger.debug("Dispatching %s %s (%s)", request.transport.value, request.service.value, request.size)
    return await adapter(request, backends)


async def fetch_service_parallel(
    transport: str | TransportKind,
    service: str | ServiceKind,
    size: str | None,
    count: int,
    backends: Backends,
) -> list[ResultEnvelope]:
    """Issue count identical requests concurrently; all must succeed.

    Results keep request order. On any failure the media handles of the
    calls that did succeed are released and the first failure in request
    order is raised.
    """

    if count < 1:
        raise ValueError(f"count must be at least 1, got {count}")

    request = parse_request(transport, service, size)
    adapter = ADAPTERS[request.transport]

    outcomes = await asyncio.gather(
        *(adapter(request, backends) for _ in range(count)),
        return_exceptions=True,
    )

    failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
    if failures:
        for outcome in outcomes:
            if isinstance(outcome, ResultEnvelope):
                outcome.release()
        logger.debug("%d of %d parallel calls failed", len(failures), count)
        raise failures[0]

    return [outcome for outcome in outcomes if isinstance(outcome, ResultEnvelope)]


def summarize(envelopes: list[ResultEnvelope]) -> LatencySummary:
    return LatencySummary.from_envelopes(envelopes)
