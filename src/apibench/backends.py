"""The dependencies every adapter is handed: HTTP client, config and RPC stubs."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from apibench.config import EndpointConfig
from apibench.grpcweb import GrpcWebTransport, RpcClients


@dataclass(frozen=True)
class Backends:
    http: httpx.AsyncClient
    config: EndpointConfig
    rpc: RpcClients


def build_backends(
    http: httpx.AsyncClient,
    config: EndpointConfig | None = None,
    rpc: RpcClients | None = None,
) -> Backends:
    """Bundle an existing client; RPC stubs default to gRPC-Web over the same client."""

    config = config or EndpointConfig()
    if rpc is None:
        rpc = RpcClients.over(GrpcWebTransport(http, config.grpc_web_url))
    return Backends(http=http, config=config, rpc=rpc)


@asynccontextmanager
async def open_backends(config: EndpointConfig | None = None) -> AsyncIterator[Backends]:
    """Own an httpx client for the lifetime of the block."""

    config = config or EndpointConfig()
    async with httpx.AsyncClient(timeout=config.timeout_seconds, follow_redirects=True) as http:
        yield build_backends(http, config)
