"""gRPC-Web adapter: unary calls to the Text, Media and Blog services."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, TypeVar
from urllib.parse import unquote

import httpx
from google.protobuf.empty_pb2 import Empty
from google.protobuf.message import DecodeError, Message

from apibench import messages
from apibench.codec import measure_utf8_bytes, mime_type_from_header, require_media_type, require_text_size
from apibench.errors import RpcProtocolError, RpcStatusError, UnreachableServiceKindError
from apibench.media import wrap_media
from apibench.models import (
    BlogAuthor,
    BlogDigest,
    BlogMedia,
    BlogMetadata,
    BlogPost,
    BlogSection,
    RequestSpec,
    ResultEnvelope,
    ServiceKind,
    TextPayload,
)
from apibench.renderer import render_blog_digest
from apibench.wire import Stopwatch, send

if TYPE_CHECKING:
    from apibench.backends import Backends

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Message)

GRPC_WEB_CONTENT_TYPE = "application/grpc-web+proto"
_REQUEST_HEADERS = {
    "content-type": GRPC_WEB_CONTENT_TYPE,
    "accept": GRPC_WEB_CONTENT_TYPE,
    "x-grpc-web": "1",
    "x-user-agent": "grpc-web-python/apibench",
}

DATA_FLAG = 0x00
TRAILER_FLAG = 0x80
_FRAME_HEADER = struct.Struct(">BI")


def encode_frame(payload: bytes, flag: int = DATA_FLAG) -> bytes:
    """Length-prefix one message: flag byte, 4-byte big-endian length, bytes."""

    return _FRAME_HEADER.pack(flag, len(payload)) + payload


def _parse_trailers(block: bytes) -> dict[str, str]:
    trailers: dict[str, str] = {}
    for line in block.decode("utf-8", errors="replace").split("\r\n"):
        if not line.strip():
            continue
        key, _, value = line.partition(":")
        trailers[key.strip().lower()] = value.strip()
    return trailers


def decode_frames(body: bytes) -> tuple[list[bytes], dict[str, str]]:
    """Split a gRPC-Web body into message payloads and trailers."""

    payloads: list[bytes] = []
    trailers: dict[str, str] = {}
    offset = 0

    while offset < len(body):
        if len(body) - offset < _FRAME_HEADER.size:
            raise RpcProtocolError("Truncated gRPC-Web frame header")
        flag, length = _FRAME_HEADER.unpack_from(body, offset)
        offset += _FRAME_HEADER.size

        chunk = body[offset : offset + length]
        if len(chunk) < length:
            raise RpcProtocolError(f"Truncated gRPC-Web frame: expected {length} bytes, got {len(chunk)}")
        offset += length

        if flag & TRAILER_FLAG:
            trailers.update(_parse_trailers(chunk))
        else:
            payloads.append(chunk)

    return payloads, trailers


class GrpcWebTransport:
    """Unary gRPC-Web calls over a shared httpx client."""

    def __init__(self, http: httpx.AsyncClient, base_url: str) -> None:
        self._http = http
        self.base_url = base_url.rstrip("/")

    async def unary(
        self, path: str, request: Message, response_type: type[M], stopwatch: Stopwatch | None = None
    ) -> M:
        """POST one framed request; ``stopwatch`` covers the round trip, not the decode."""

        url = f"{self.base_url}/{path}"
        response = await send(
            self._http,
            "POST",
            url,
            transport="gRPC-Web",
            stopwatch=stopwatch,
            content=encode_frame(request.SerializeToString()),
            headers=_REQUEST_HEADERS,
        )

        payloads, trailers = decode_frames(response.content)

        status = trailers.get("grpc-status", response.headers.get("grpc-status"))
        detail = trailers.get("grpc-message", response.headers.get("grpc-message", ""))
        if status is None:
            raise RpcProtocolError(f"gRPC-Web reply from {path} has no grpc-status")
        try:
            code = int(status)
        except ValueError as exc:
            raise RpcProtocolError(f"Invalid grpc-status {status!r} from {path}") from exc
        if code != 0:
            raise RpcStatusError(code, unquote(detail))

        if not payloads:
            raise RpcProtocolError(f"gRPC-Web reply from {path} carried no message")

        reply = response_type()
        try:
            reply.ParseFromString(payloads[0])
        except DecodeError as exc:
            raise RpcProtocolError(f"Could not decode reply from {path}: {exc}") from exc
        return reply


class _ServiceClient:
    service_name = ""

    def __init__(self, transport: GrpcWebTransport) -> None:
        self._transport = transport

    async def _call(self, method: str, response_type: type[M], stopwatch: Stopwatch | None) -> M:
        return await self._transport.unary(f"{self.service_name}/{method}", Empty(), response_type, stopwatch)


class TextClient(_ServiceClient):
    service_name = "text.Text"

    async def get_small(self, stopwatch: Stopwatch | None = None) -> Message:
        return await self._call("GetSmall", messages.TextResponse, stopwatch)

    async def get_medium(self, stopwatch: Stopwatch | None = None) -> Message:
        return await self._call("GetMedium", messages.TextResponse, stopwatch)

    async def get_large(self, stopwatch: Stopwatch | None = None) -> Message:
        return await self._call("GetLarge", messages.TextResponse, stopwatch)


class MediaClient(_ServiceClient):
    service_name = "media.Media"

    async def get_image(self, stopwatch: Stopwatch | None = None) -> Message:
        return await self._call("GetImage", messages.MediaResponse, stopwatch)

    async def get_audio(self, stopwatch: Stopwatch | None = None) -> Message:
        return await self._call("GetAudio", messages.MediaResponse, stopwatch)

    async def get_video(self, stopwatch: Stopwatch | None = None) -> Message:
        return await self._call("GetVideo", messages.MediaResponse, stopwatch)


class BlogClient(_ServiceClient):
    service_name = "blog.Blog"

    async def get_all(self, stopwatch: Stopwatch | None = None) -> Message:
        return await self._call("GetAll", messages.BlogPostsResponse, stopwatch)


@dataclass(frozen=True)
class RpcClients:
    """The three service stubs; stateless and shared by concurrent calls."""

    text: TextClient
    media: MediaClient
    blog: BlogClient

    @classmethod
    def over(cls, transport: GrpcWebTransport) -> "RpcClients":
        return cls(text=TextClient(transport), media=MediaClient(transport), blog=BlogClient(transport))


def select_method(request: RequestSpec, clients: RpcClients) -> Callable[..., Awaitable[Message]]:
    """Pick one of the nine remote methods; validates size and media type.

    Each method takes an optional ``stopwatch`` that it runs around its own
    network round trip only.
    """

    if request.service == ServiceKind.TEXT:
        size = require_text_size(request.size)
        return {
            "small": clients.text.get_small,
            "medium": clients.text.get_medium,
            "large": clients.text.get_large,
        }[size]

    if request.service == ServiceKind.MEDIA:
        media_type = require_media_type(request.size)
        return {
            "image": clients.media.get_image,
            "audio": clients.media.get_audio,
            "video": clients.media.get_video,
        }[media_type]

    if request.service == ServiceKind.BLOG:
        return clients.blog.get_all

    raise UnreachableServiceKindError(request.service)


def post_from_message(message: Message) -> BlogPost:
    """Convert a ``blog.BlogPost`` message; absent sub-messages become empty."""

    media = None
    if message.HasField("media"):
        media = BlogMedia(
            image_url=message.media.image_url or None,
            audio_url=message.media.audio_url or None,
            video_url=message.media.video_url or None,
        )

    metadata = None
    if message.HasField("metadata"):
        metadata = BlogMetadata(tags=list(message.metadata.tags), word_count=message.metadata.word_count)

    return BlogPost(
        id=message.id,
        title=message.title,
        author=BlogAuthor(name=message.author.name, email=message.author.email),
        sections=[BlogSection(heading=section.heading, body=section.body) for section in message.sections],
        media=media,
        metadata=metadata,
        published_at=message.published_at or None,
    )


async def fetch_grpc_web(request: RequestSpec, backends: "Backends") -> ResultEnvelope:
    method = select_method(request, backends.rpc)

    stopwatch = Stopwatch()
    reply = await method(stopwatch=stopwatch)
    logger.debug("gRPC-Web %s/%s replied in %.2f ms", request.service.value, request.size, stopwatch.elapsed_ms)

    if request.service == ServiceKind.TEXT:
        content = reply.content or ""
        return ResultEnvelope(
            request=request,
            elapsed_ms=stopwatch.elapsed_ms,
            payload_bytes=measure_utf8_bytes(content),
            payload=TextPayload(content=content),
        )

    if request.service == ServiceKind.BLOG:
        posts = [post_from_message(post) for post in reply.posts]
        digest = render_blog_digest(posts)
        return ResultEnvelope(
            request=request,
            elapsed_ms=stopwatch.elapsed_ms,
            payload_bytes=measure_utf8_bytes(digest),
            payload=BlogDigest(posts=posts, content=digest),
        )

    if request.service == ServiceKind.MEDIA:
        mime_type = mime_type_from_header(reply.content_type, request.size or "")
        handle = wrap_media(bytes(reply.data), mime_type, backends.config.media_dir)
        return ResultEnvelope(
            request=request,
            elapsed_ms=stopwatch.elapsed_ms,
            payload_bytes=handle.byte_length,
            payload=handle,
        )

    raise UnreachableServiceKindError(request.service)
