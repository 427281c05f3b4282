from datetime import datetime, timezone
from pathlib import Path

from apibench.media import wrap_media
from apibench.models import (
    BlogAuthor,
    BlogDigest,
    BlogMetadata,
    BlogPost,
    BlogSection,
    LatencySummary,
    RequestSpec,
    ResultEnvelope,
    ServiceKind,
    TextPayload,
    TransportKind,
)
from apibench.renderer import (
    POST_SEPARATOR,
    describe_envelope,
    describe_summary,
    format_envelope,
    render_blog_digest,
)


def _post(title: str, **overrides) -> BlogPost:
    fields = {
        "title": title,
        "author": BlogAuthor(name="Alice", email="alice@example.com"),
        "sections": [
            BlogSection(heading="Intro", body="Hello."),
            BlogSection(heading="Outro", body="Bye."),
        ],
    }
    fields.update(overrides)
    return BlogPost(**fields)


def test_render_single_post_without_metadata() -> None:
    digest = render_blog_digest([_post("First")])

    assert digest == (
        "Title: First\n"
        "Author: Alice <alice@example.com>\n"
        "\n"
        "### Intro\nHello.\n"
        "\n"
        "### Outro\nBye."
    )


def test_render_post_with_metadata_and_publish_date() -> None:
    post = _post(
        "Dated",
        metadata=BlogMetadata(tags=["api", "bench"], word_count=42),
        published_at=datetime(2026, 2, 20, 12, 0, tzinfo=timezone.utc),
    )
    digest = render_blog_digest([post])

    assert "Published: 2026-02-20T12:00:00+00:00\nTags: api, bench\nWord Count: 42\n\n### Intro" in digest


def test_render_keeps_server_order_and_separates_posts() -> None:
    digest = render_blog_digest([_post("Zulu"), _post("Alpha")])

    assert digest.count(POST_SEPARATOR) == 1
    assert digest.index("Title: Zulu") < digest.index("Title: Alpha")


def test_blog_post_accepts_camel_case_wire_fields() -> None:
    post = BlogPost.model_validate(
        {
            "id": 7,
            "title": "Wire",
            "author": None,
            "sections": None,
            "media": {"imageUrl": "https://cdn.example.com/a.jpg", "audioUrl": None, "videoUrl": None},
            "metadata": {"tags": None, "wordCount": 12},
            "publishedAt": "2024-05-01T10:00:00.1234567Z",
        }
    )

    assert post.author.name == ""
    assert post.sections == []
    assert post.media is not None and post.media.image_url == "https://cdn.example.com/a.jpg"
    assert post.metadata is not None and post.metadata.word_count == 12
    assert post.metadata.tags == []
    assert post.published_at == datetime(2024, 5, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)


def test_format_envelope_template() -> None:
    assert format_envelope(1.234, 2, "Payload:\nhi") == (
        "Response Time: 1.23 ms\nPayload Size: 2 bytes\n\nPayload:\nhi"
    )


def test_describe_envelope_for_each_payload_kind(tmp_path: Path) -> None:
    text = ResultEnvelope(
        request=RequestSpec(transport=TransportKind.REST, service=ServiceKind.TEXT, size="small"),
        elapsed_ms=3.0,
        payload_bytes=2,
        payload=TextPayload(content="hi"),
    )
    assert describe_envelope(text).endswith("\n\nPayload:\nhi")

    blog = ResultEnvelope(
        request=RequestSpec(transport=TransportKind.GRAPHQL, service=ServiceKind.BLOG),
        elapsed_ms=3.0,
        payload_bytes=9,
        payload=BlogDigest(posts=[], content="Title: A"),
    )
    assert describe_envelope(blog).endswith("bytes\n\nTitle: A")

    handle = wrap_media(b"\x00\x01", "image/jpeg", tmp_path)
    media = ResultEnvelope(
        request=RequestSpec(transport=TransportKind.GRPC_WEB, service=ServiceKind.MEDIA, size="image"),
        elapsed_ms=3.0,
        payload_bytes=handle.byte_length,
        payload=handle,
    )
    report = describe_envelope(media)
    assert "Payload Size: 2 bytes" in report
    assert f"Media URL: {handle.url}" in report
    media.release()


def test_describe_summary() -> None:
    summary = LatencySummary(count=3, min_ms=1.0, mean_ms=2.0, median_ms=2.0, max_ms=3.0, total_bytes=6)
    report = describe_summary(summary)

    assert "Requests: 3" in report
    assert "Mean: 2.00 ms" in report
    assert "Total Payload: 6 bytes" in report


def test_published_timestamp_is_normalized_to_isoformat() -> None:
    post = BlogPost.model_validate(
        {"title": "Zoned", "author": {"name": "Alice", "email": "a@example.com"}, "publishedAt": "2024-01-01T00:00:00Z"}
    )

    assert "Published: 2024-01-01T00:00:00+00:00\n" in render_blog_digest([post])
