"""Configuration models and enums for apibench."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

DEFAULT_REST_URL = "http://localhost:5125"
DEFAULT_GRAPHQL_URL = "http://localhost:5244/graphql"
DEFAULT_GRPC_WEB_URL = "http://localhost:5109"


class GraphQLDialect(str, Enum):
    """Which GraphQL schema the queries are written against.

    ``posts`` exposes ``posts { ... }`` and inline media scalars.
    ``legacy`` exposes ``blog { ... }`` and media objects carrying a ``url``.
    Replies are decoded by shape either way.
    """

    POSTS = "posts"
    LEGACY = "legacy"


class EndpointConfig(BaseModel):
    """Backend locations and HTTP client settings."""

    rest_base_url: str = DEFAULT_REST_URL
    graphql_url: str = DEFAULT_GRAPHQL_URL
    grpc_web_url: str = DEFAULT_GRPC_WEB_URL
    graphql_dialect: GraphQLDialect = GraphQLDialect.POSTS
    timeout_seconds: float | None = Field(default=None, gt=0)
    media_dir: Path | None = None

    @field_validator("rest_base_url", "graphql_url", "grpc_web_url")
    @classmethod
    def validate_http_url(cls, value: str) -> str:
        parsed = urlparse(value.strip())
        if parsed.scheme not in {"http", "https"}:
            raise ValueError(f"Unsupported URL scheme in '{value}'")
        if not parsed.netloc:
            raise ValueError(f"Missing host in '{value}'")
        return value.strip().rstrip("/")
