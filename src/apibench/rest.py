"""REST adapter: one GET per request against fixed route templates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from apibench.codec import measure_utf8_bytes, mime_type_from_header, require_media_type, require_text_size
from apibench.errors import PayloadDecodeError, UnreachableServiceKindError
from apibench.media import wrap_media
from apibench.models import BlogDigest, BlogPost, RequestSpec, ResultEnvelope, ServiceKind, TextPayload
from apibench.renderer import render_blog_digest
from apibench.wire import Stopwatch, send

if TYPE_CHECKING:
    from apibench.backends import Backends

BLOG_PATH = "/api/blog"


def rest_path(request: RequestSpec) -> str:
    """Route for a request; validates size and media type."""

    if request.service == ServiceKind.TEXT:
        return f"/text/{require_text_size(request.size)}"
    if request.service == ServiceKind.MEDIA:
        return f"/media/{require_media_type(request.size)}"
    if request.service == ServiceKind.BLOG:
        return BLOG_PATH
    raise UnreachableServiceKindError(request.service)


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise PayloadDecodeError(f"REST response is not valid JSON: {exc}") from exc


def _decode_text(body: Any) -> str:
    content = body.get("content") if isinstance(body, dict) else None
    if not isinstance(content, str):
        raise PayloadDecodeError("REST text response has no string 'content' field")
    return content


def _decode_posts(body: Any) -> list[BlogPost]:
    if not isinstance(body, list):
        raise PayloadDecodeError("REST blog response is not a JSON array")
    try:
        return [BlogPost.model_validate(item) for item in body]
    except ValidationError as exc:
        raise PayloadDecodeError(f"REST blog post has an unexpected shape: {exc}") from exc


async def fetch_rest(request: RequestSpec, backends: "Backends") -> ResultEnvelope:
    path = rest_path(request)
    url = f"{backends.config.rest_base_url}{path}"

    stopwatch = Stopwatch()
    response = await send(backends.http, "GET", url, transport="REST", stopwatch=stopwatch)

    if request.service == ServiceKind.TEXT:
        content = _decode_text(_json_body(response))
        return ResultEnvelope(
            request=request,
            elapsed_ms=stopwatch.elapsed_ms,
            payload_bytes=measure_utf8_bytes(content),
            payload=TextPayload(content=content),
        )

    if request.service == ServiceKind.BLOG:
        posts = _decode_posts(_json_body(response))
        digest = render_blog_digest(posts)
        return ResultEnvelope(
            request=request,
            elapsed_ms=stopwatch.elapsed_ms,
            payload_bytes=measure_utf8_bytes(digest),
            payload=BlogDigest(posts=posts, content=digest),
        )

    if request.service == ServiceKind.MEDIA:
        mime_type = mime_type_from_header(response.headers.get("content-type"), request.size or "")
        handle = wrap_media(response.content, mime_type, backends.config.media_dir)
        return ResultEnvelope(
            request=request,
            elapsed_ms=stopwatch.elapsed_ms,
            payload_bytes=handle.byte_length,
            payload=handle,
        )

    raise UnreachableServiceKindError(request.service)
