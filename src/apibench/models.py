"""Domain models used by apibench."""

from __future__ import annotations

import logging
import statistics
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from dateutil.parser import isoparse
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

TEXT_SIZES = ("small", "medium", "large")
MEDIA_TYPES = ("image", "audio", "video")


class TransportKind(str, Enum):
    REST = "REST"
    GRAPHQL = "GraphQL"
    GRPC_WEB = "gRPC-Web"


class ServiceKind(str, Enum):
    TEXT = "Text"
    BLOG = "Blog"
    MEDIA = "Media"


class RequestSpec(BaseModel):
    """One logical request; fully determines the wire call."""

    model_config = ConfigDict(frozen=True)

    transport: TransportKind
    service: ServiceKind
    size: str | None = None


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BlogAuthor(_WireModel):
    name: str = ""
    email: str = ""


class BlogSection(_WireModel):
    heading: str = ""
    body: str = ""


class BlogMedia(_WireModel):
    image_url: str | None = None
    audio_url: str | None = None
    video_url: str | None = None


class BlogMetadata(_WireModel):
    tags: list[str] = Field(default_factory=list)
    word_count: int = 0

    @field_validator("tags", mode="before")
    @classmethod
    def _null_tags(cls, value: Any) -> Any:
        return [] if value is None else value


def _to_datetime(raw_timestamp: Any) -> datetime | None:
    if raw_timestamp is None or isinstance(raw_timestamp, datetime):
        return raw_timestamp
    if not raw_timestamp:
        return None
    try:
        return isoparse(str(raw_timestamp))
    except ValueError:
        logger.debug("Ignoring unparseable publish timestamp %r", raw_timestamp)
        return None


class BlogPost(_WireModel):
    """A blog post as served by any of the three backends."""

    id: int | None = None
    title: str = ""
    author: BlogAuthor = Field(default_factory=BlogAuthor)
    sections: list[BlogSection] = Field(default_factory=list)
    media: BlogMedia | None = None
    metadata: BlogMetadata | None = None
    published_at: datetime | None = None

    @field_validator("author", mode="before")
    @classmethod
    def _null_author(cls, value: Any) -> Any:
        return BlogAuthor() if value is None else value

    @field_validator("sections", mode="before")
    @classmethod
    def _null_sections(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("published_at", mode="before")
    @classmethod
    def _parse_published_at(cls, value: Any) -> datetime | None:
        return _to_datetime(value)


class TextPayload(BaseModel):
    kind: Literal["text"] = "text"
    content: str


class BlogDigest(BaseModel):
    """Posts in server order plus their rendered plain-text digest."""

    kind: Literal["blog"] = "blog"
    posts: list[BlogPost] = Field(default_factory=list)
    content: str


class MediaHandle(BaseModel):
    """Decoded media bytes backed by a private temporary file.

    The caller owns the handle and must call ``release`` (or use it as a
    context manager) once the media is no longer displayed.
    """

    kind: Literal["media"] = "media"
    mime_type: str
    byte_length: int = Field(ge=0)
    path: Path

    _released: bool = PrivateAttr(default=False)

    @property
    def url(self) -> str:
        return self.path.as_uri()

    @property
    def released(self) -> bool:
        return self._released

    def read_bytes(self) -> bytes:
        if self._released:
            raise ValueError(f"Media handle {self.url} has been released")
        return self.path.read_bytes()

    def release(self) -> None:
        if self._released:
            return
        self.path.unlink(missing_ok=True)
        self._released = True
        logger.debug("Released media handle %s", self.url)

    def __enter__(self) -> "MediaHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


Payload = Annotated[Union[TextPayload, BlogDigest, MediaHandle], Field(discriminator="kind")]


class ResultEnvelope(BaseModel):
    """Uniform adapter output: round-trip latency, payload size and payload."""

    request: RequestSpec
    elapsed_ms: float = Field(ge=0)
    payload_bytes: int = Field(ge=0)
    payload: Payload

    def release(self) -> None:
        if isinstance(self.payload, MediaHandle):
            self.payload.release()


class LatencySummary(BaseModel):
    """Aggregate numbers for a batch of identical requests."""

    count: int
    min_ms: float
    mean_ms: float
    median_ms: float
    max_ms: float
    total_bytes: int

    @classmethod
    def from_envelopes(cls, envelopes: list[ResultEnvelope]) -> "LatencySummary":
        if not envelopes:
            raise ValueError("Cannot summarize an empty batch")

        timings = [envelope.elapsed_ms for envelope in envelopes]
        return cls(
            count=len(envelopes),
            min_ms=min(timings),
            mean_ms=statistics.fmean(timings),
            median_ms=statistics.median(timings),
            max_ms=max(timings),
            total_bytes=sum(envelope.payload_bytes for envelope in envelopes),
        )
