"""Plain-text rendering of blog digests and result envelopes."""

from __future__ import annotations

from jinja2 import Environment

from apibench.models import BlogDigest, BlogPost, LatencySummary, MediaHandle, ResultEnvelope, TextPayload

POST_SEPARATOR = "\n\n---\n\n"

_POST_TEMPLATE = (
    "Title: {{ post.title }}\n"
    "Author: {{ post.author.name }} <{{ post.author.email }}>\n"
    "{% if post.published_at %}Published: {{ post.published_at.isoformat() }}\n{% endif %}"
    "{% if post.metadata %}"
    "Tags: {{ post.metadata.tags | join(', ') }}\n"
    "Word Count: {{ post.metadata.word_count }}\n"
    "{% endif %}"
    "\n"
    "{% for section in post.sections %}"
    "### {{ section.heading }}\n{{ section.body }}"
    "{% if not loop.last %}\n\n{% endif %}"
    "{% endfor %}"
)

# trim_blocks would eat the blank line that follows the metadata block.
_environment = Environment(autoescape=False, trim_blocks=False, lstrip_blocks=False)
_post_template = _environment.from_string(_POST_TEMPLATE)


def render_post(post: BlogPost) -> str:
    return _post_template.render(post=post)


def render_blog_digest(posts: list[BlogPost]) -> str:
    """Render posts in server order, separated by a horizontal rule."""

    return POST_SEPARATOR.join(render_post(post) for post in posts)


def format_envelope(elapsed_ms: float, byte_size: int, body: str) -> str:
    return f"Response Time: {elapsed_ms:.2f} ms\nPayload Size: {byte_size} bytes\n\n{body}"


def payload_body(envelope: ResultEnvelope) -> str:
    payload = envelope.payload
    if isinstance(payload, TextPayload):
        return f"Payload:\n{payload.content}"
    if isinstance(payload, BlogDigest):
        return payload.content
    if isinstance(payload, MediaHandle):
        return f"Media URL: {payload.url}"
    raise TypeError(f"Unsupported payload {type(payload).__name__}")


def describe_envelope(envelope: ResultEnvelope) -> str:
    """The three-line report shown for every transport."""

    return format_envelope(envelope.elapsed_ms, envelope.payload_bytes, payload_body(envelope))


def describe_summary(summary: LatencySummary) -> str:
    return (
        f"Requests: {summary.count}\n"
        f"Min: {summary.min_ms:.2f} ms\n"
        f"Mean: {summary.mean_ms:.2f} ms\n"
        f"Median: {summary.median_ms:.2f} ms\n"
        f"Max: {summary.max_ms:.2f} ms\n"
        f"Total Payload: {summary.total_bytes} bytes"
    )
