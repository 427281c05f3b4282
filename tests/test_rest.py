import httpx
import pytest

from apibench.codec import measure_utf8_bytes
from apibench.errors import BackendConnectionError, HttpStatusError, InvalidMediaTypeError, InvalidTextSizeError
from apibench.input import parse_request
from apibench.models import BlogDigest, MediaHandle, TextPayload
from apibench.rest import fetch_rest, rest_path

_BLOG_POSTS = [
    {
        "id": 1,
        "title": "First",
        "author": {"name": "Alice", "email": "alice@example.com"},
        "sections": [{"heading": "Intro", "body": "Hello."}],
        "media": {"imageUrl": None, "audioUrl": None, "videoUrl": None},
        "metadata": {"tags": ["a"], "wordCount": 1},
        "publishedAt": "2024-01-01T00:00:00Z",
    },
    {
        "id": 2,
        "title": "Second",
        "author": {"name": "Bob", "email": "bob@example.com"},
        "sections": [],
    },
]


def test_rest_path_templates() -> None:
    assert rest_path(parse_request("REST", "Text", "medium")) == "/text/medium"
    assert rest_path(parse_request("REST", "Media", "video")) == "/media/video"
    assert rest_path(parse_request("REST", "Blog", "ignored")) == "/api/blog"


@pytest.mark.asyncio
async def test_fetch_text_small(server, backends_for) -> None:
    server.respond("GET", "/text/small", json={"content": "hi"})

    envelope = await fetch_rest(parse_request("REST", "Text", "small"), backends_for(server))

    assert isinstance(envelope.payload, TextPayload)
    assert envelope.payload.content == "hi"
    assert envelope.payload_bytes == 2
    assert envelope.elapsed_ms >= 0
    assert str(server.requests[0].url) == "http://localhost:5125/text/small"


@pytest.mark.asyncio
async def test_fetch_text_counts_utf8_bytes(server, backends_for) -> None:
    server.respond("GET", "/text/large", json={"content": "héllo wörld"})

    envelope = await fetch_rest(parse_request("REST", "Text", "large"), backends_for(server))

    assert envelope.payload_bytes == measure_utf8_bytes("héllo wörld") == 13


@pytest.mark.asyncio
async def test_fetch_blog_renders_digest_in_server_order(server, backends_for) -> None:
    server.respond("GET", "/api/blog", json=_BLOG_POSTS)

    envelope = await fetch_rest(parse_request("REST", "Blog"), backends_for(server))

    assert isinstance(envelope.payload, BlogDigest)
    assert [post.title for post in envelope.payload.posts] == ["First", "Second"]
    digest = envelope.payload.content
    assert digest.index("Title: First") < digest.index("### Intro\nHello.") < digest.index("Title: Second")
    assert "Author: Bob <bob@example.com>" in digest
    assert envelope.payload_bytes == measure_utf8_bytes(digest)


@pytest.mark.asyncio
async def test_fetch_media_uses_content_type_header(server, backends_for) -> None:
    server.respond("GET", "/media/image", content=b"\x89PNG", headers={"content-type": "image/png"})

    envelope = await fetch_rest(parse_request("REST", "Media", "image"), backends_for(server))

    assert isinstance(envelope.payload, MediaHandle)
    with envelope.payload as handle:
        assert handle.mime_type == "image/png"
        assert handle.byte_length == 4
        assert envelope.payload_bytes == 4
        assert handle.read_bytes() == b"\x89PNG"


@pytest.mark.asyncio
async def test_fetch_media_falls_back_to_fixed_mime_type(server, backends_for) -> None:
    server.respond("GET", "/media/audio", content=b"RIFF0000WAVE")

    envelope = await fetch_rest(parse_request("REST", "Media", "audio"), backends_for(server))

    assert envelope.payload.mime_type == "audio/wav"
    assert envelope.payload.byte_length == 12
    envelope.release()


@pytest.mark.asyncio
async def test_invalid_media_type_makes_no_request(server, backends_for) -> None:
    with pytest.raises(InvalidMediaTypeError):
        await fetch_rest(parse_request("REST", "Media", "picture"), backends_for(server))

    assert server.requests == []


@pytest.mark.asyncio
async def test_invalid_text_size_makes_no_request(server, backends_for) -> None:
    with pytest.raises(InvalidTextSizeError):
        await fetch_rest(parse_request("REST", "Text", "huge"), backends_for(server))

    assert server.requests == []


@pytest.mark.asyncio
async def test_non_success_status_raises(server, backends_for) -> None:
    server.respond("GET", "/text/small", status=503)

    with pytest.raises(HttpStatusError) as excinfo:
        await fetch_rest(parse_request("REST", "Text", "small"), backends_for(server))

    assert excinfo.value.status == 503
    assert "REST fetch failed with status 503" in str(excinfo.value)


@pytest.mark.asyncio
async def test_connection_failure_is_wrapped(server, backends_for) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    server.route("GET", "/text/small", refuse)

    with pytest.raises(BackendConnectionError):
        await fetch_rest(parse_request("REST", "Text", "small"), backends_for(server))


@pytest.mark.asyncio
async def test_undecodable_body_is_wrapped(server, backends_for) -> None:
    server.respond("GET", "/text/small", content=b"not gzip", headers={"content-encoding": "gzip"})

    with pytest.raises(BackendConnectionError, match="REST request to"):
        await fetch_rest(parse_request("REST", "Text", "small"), backends_for(server))
