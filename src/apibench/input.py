"""Parsing of user-supplied transport, service and size names."""

from __future__ import annotations

from apibench.errors import UnknownServiceError, UnknownTransportError
from apibench.models import RequestSpec, ServiceKind, TransportKind

_TRANSPORT_ALIASES = {
    "rest": TransportKind.REST,
    "graphql": TransportKind.GRAPHQL,
    "grpc-web": TransportKind.GRPC_WEB,
    "grpcweb": TransportKind.GRPC_WEB,
    "grpc": TransportKind.GRPC_WEB,
    "binaryrpc": TransportKind.GRPC_WEB,
    "binary-rpc": TransportKind.GRPC_WEB,
}

_SERVICE_ALIASES = {kind.value.lower(): kind for kind in ServiceKind}


def parse_transport(transport: str | TransportKind) -> TransportKind:
    """Resolve a transport name (case-insensitive, with aliases)."""

    if isinstance(transport, TransportKind):
        return transport
    try:
        return _TRANSPORT_ALIASES[transport.strip().lower()]
    except KeyError:
        raise UnknownTransportError(transport) from None


def parse_service(service: str | ServiceKind) -> ServiceKind:
    if isinstance(service, ServiceKind):
        return service
    try:
        return _SERVICE_ALIASES[service.strip().lower()]
    except KeyError:
        raise UnknownServiceError(service) from None


def parse_request(
    transport: str | TransportKind,
    service: str | ServiceKind,
    size: str | None = None,
) -> RequestSpec:
    """Build a RequestSpec; the transport is resolved first.

    Size and media type domains are checked by the adapters, so an
    out-of-domain value passes through here unchanged (lower-cased).
    Blog requests carry no size.
    """

    transport_kind = parse_transport(transport)
    service_kind = parse_service(service)

    normalized_size = size.strip().lower() if size is not None else None
    if service_kind == ServiceKind.BLOG:
        normalized_size = None

    return RequestSpec(transport=transport_kind, service=service_kind, size=normalized_size)
