"""GraphQL adapter: one POST of ``{"query": ...}`` per request.

Two server schemas are in circulation. The ``posts`` dialect returns blog
posts under ``posts`` with media inline (URL-safe base64 or a byte
array); the ``legacy`` dialect returns them under ``blog`` and hands out
media as ``{url}`` objects that need a second GET. The configured dialect
only picks the query text; replies are decoded by their shape.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from apibench.codec import (
    decode_base64url,
    decode_byte_array,
    measure_utf8_bytes,
    mime_type_for,
    mime_type_from_header,
    require_media_type,
    require_text_size,
)
from apibench.config import GraphQLDialect
from apibench.errors import GraphQLResponseError, MediaDecodeError, PayloadDecodeError, UnreachableServiceKindError
from apibench.media import wrap_media
from apibench.models import BlogDigest, BlogPost, RequestSpec, ResultEnvelope, ServiceKind, TextPayload
from apibench.renderer import render_blog_digest
from apibench.wire import Stopwatch, send

if TYPE_CHECKING:
    from apibench.backends import Backends

logger = logging.getLogger(__name__)

_POSTS_QUERY = """
query {
  posts {
    id
    title
    author { name email }
    sections { heading body }
    media { imageUrl audioUrl videoUrl }
    metadata { tags wordCount }
    publishedAt
  }
}
"""

_LEGACY_BLOG_QUERY = """
query {
  blog {
    title
    author { name email }
    sections { heading body }
  }
}
"""


def build_query(request: RequestSpec, dialect: GraphQLDialect = GraphQLDialect.POSTS) -> str:
    """Query text for a request; validates size and media type."""

    if request.service == ServiceKind.TEXT:
        size = require_text_size(request.size)
        return f"query {{ {size} {{ content }} }}"

    if request.service == ServiceKind.MEDIA:
        media_type = require_media_type(request.size)
        if dialect == GraphQLDialect.LEGACY:
            return f"query {{ {media_type} {{ url }} }}"
        return f"query {{ {media_type} }}"

    if request.service == ServiceKind.BLOG:
        return _LEGACY_BLOG_QUERY if dialect == GraphQLDialect.LEGACY else _POSTS_QUERY

    raise UnreachableServiceKindError(request.service)


def _error_message(error: Any) -> str:
    if isinstance(error, dict) and "message" in error:
        return str(error["message"])
    return str(error)


def extract_data(response: httpx.Response) -> dict[str, Any]:
    """Return ``data``; a non-empty ``errors`` array always wins."""

    try:
        body = response.json()
    except ValueError as exc:
        raise PayloadDecodeError(f"GraphQL response is not valid JSON: {exc}") from exc
    if not isinstance(body, dict):
        raise PayloadDecodeError("GraphQL response is not a JSON object")

    errors = body.get("errors")
    if isinstance(errors, list) and errors:
        messages = [_error_message(error) for error in errors]
        logger.debug("GraphQL errors: %s", messages)
        raise GraphQLResponseError(messages)

    data = body.get("data")
    if not isinstance(data, dict):
        raise PayloadDecodeError("GraphQL response has no 'data' object")
    return data


def _decode_text(data: dict[str, Any], size: str) -> str:
    field = data.get(size)
    content = field.get("content") if isinstance(field, dict) else None
    if not isinstance(content, str):
        raise PayloadDecodeError(f"GraphQL response has no '{size}.content' string")
    return content


def _decode_posts(data: dict[str, Any]) -> list[BlogPost]:
    raw_posts = data["posts"] if "posts" in data else data.get("blog")
    if not isinstance(raw_posts, list):
        raise PayloadDecodeError("GraphQL response has no 'posts' or 'blog' list")
    try:
        return [BlogPost.model_validate(item) for item in raw_posts]
    except ValidationError as exc:
        raise PayloadDecodeError(f"GraphQL blog post has an unexpected shape: {exc}") from exc


async def _decode_media(
    data: dict[str, Any],
    media_type: str,
    backends: "Backends",
    stopwatch: Stopwatch,
) -> tuple[bytes, str]:
    raw = data.get(media_type)

    if isinstance(raw, str):
        return decode_base64url(raw), mime_type_for(media_type)

    if isinstance(raw, list):
        return decode_byte_array(raw), mime_type_for(media_type)

    if isinstance(raw, dict) and isinstance(raw.get("url"), str):
        media_url = str(httpx.URL(backends.config.graphql_url).join(raw["url"]))
        response = await send(backends.http, "GET", media_url, transport="GraphQL", stopwatch=stopwatch)
        return response.content, mime_type_from_header(response.headers.get("content-type"), media_type)

    raise MediaDecodeError("Unexpected media payload format")


async def fetch_graphql(request: RequestSpec, backends: "Backends") -> ResultEnvelope:
    query = build_query(request, backends.config.graphql_dialect)

    stopwatch = Stopwatch()
    response = await send(
        backends.http,
        "POST",
        backends.config.graphql_url,
        transport="GraphQL",
        stopwatch=stopwatch,
        json={"query": query},
    )
    data = extract_data(response)

    if request.service == ServiceKind.TEXT:
        content = _decode_text(data, request.size or "")
        return ResultEnvelope(
            request=request,
            elapsed_ms=stopwatch.elapsed_ms,
            payload_bytes=measure_utf8_bytes(content),
            payload=TextPayload(content=content),
        )

    if request.service == ServiceKind.BLOG:
        posts = _decode_posts(data)
        digest = render_blog_digest(posts)
        return ResultEnvelope(
            request=request,
            elapsed_ms=stopwatch.elapsed_ms,
            payload_bytes=measure_utf8_bytes(digest),
            payload=BlogDigest(posts=posts, content=digest),
        )

    if request.service == ServiceKind.MEDIA:
        media_type = request.size or ""
        content, mime_type = await _decode_media(data, media_type, backends, stopwatch)
        handle = wrap_media(content, mime_type, backends.config.media_dir)
        return ResultEnvelope(
            request=request,
            elapsed_ms=stopwatch.elapsed_ms,
            payload_bytes=handle.byte_length,
            payload=handle,
        )

    raise UnreachableServiceKindError(request.service)
