"""Error taxonomy shared by every transport adapter."""

from __future__ import annotations


class ApiBenchError(RuntimeError):
    """Base error for request parsing, transport and decoding failures."""


class UnknownTransportError(ApiBenchError):
    """Raised when a transport name is not REST, GraphQL or gRPC-Web."""

    def __init__(self, transport: str) -> None:
        super().__init__(f"Unknown API type: {transport}")
        self.transport = transport


class UnknownServiceError(ApiBenchError):
    """Raised when a service name is not Text, Blog or Media."""

    def __init__(self, service: str) -> None:
        super().__init__(f"Unknown service: {service}")
        self.service = service


class InvalidTextSizeError(ApiBenchError):
    def __init__(self, size: str | None) -> None:
        super().__init__(f"Invalid text size: {size}")
        self.size = size


class InvalidMediaTypeError(ApiBenchError):
    def __init__(self, media_type: str | None) -> None:
        super().__init__(f"Invalid media type: {media_type}")
        self.media_type = media_type


class HttpStatusError(ApiBenchError):
    """Raised when a backend answers with a non-2xx status."""

    def __init__(self, transport: str, status: int) -> None:
        super().__init__(f"{transport} fetch failed with status {status}")
        self.transport = transport
        self.status = status


class BackendConnectionError(ApiBenchError):
    """Raised when the HTTP layer cannot complete a round trip."""


class GraphQLResponseError(ApiBenchError):
    """Raised when a GraphQL reply carries a non-empty ``errors`` array."""

    def __init__(self, messages: list[str]) -> None:
        super().__init__(f"GraphQL error: {'; '.join(messages)}")
        self.messages = messages


class PayloadDecodeError(ApiBenchError):
    """Raised when a reply body does not have the expected shape."""


class MediaDecodeError(PayloadDecodeError):
    """Raised when a media payload cannot be turned into bytes."""


class RpcStatusError(ApiBenchError):
    """Raised when a gRPC-Web reply reports a non-OK ``grpc-status``."""

    def __init__(self, code: int, message: str) -> None:
        detail = f": {message}" if message else ""
        super().__init__(f"gRPC-Web call failed with status {code}{detail}")
        self.code = code
        self.message = message


class RpcProtocolError(ApiBenchError):
    """Raised when a gRPC-Web body is not a well-formed frame sequence."""


class UnreachableServiceKindError(ApiBenchError):
    """Raised when an adapter is handed a service it has no branch for."""

    def __init__(self, service: object) -> None:
        super().__init__(f"Unreachable: unknown service {service!r}")
        self.service = service
