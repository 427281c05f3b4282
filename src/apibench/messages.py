"""Protobuf reply messages for the Text, Media and Blog RPC services.

The schemas are declared here as file descriptors and registered in a
private pool, so no protoc step is needed:

    package text;  message TextResponse { string content = 1; }
    package media; message MediaResponse { bytes data = 1; string content_type = 2; }
    package blog;  message BlogPostsResponse { repeated BlogPost posts = 1; }
"""

from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_Field = descriptor_pb2.FieldDescriptorProto

_OPTIONAL = _Field.LABEL_OPTIONAL
_REPEATED = _Field.LABEL_REPEATED


def _field(
    name: str,
    number: int,
    field_type: int,
    *,
    label: int = _OPTIONAL,
    type_name: str | None = None,
) -> descriptor_pb2.FieldDescriptorProto:
    field = _Field(name=name, number=number, type=field_type, label=label)
    if type_name is not None:
        field.type_name = type_name
    return field


def _message(name: str, *fields: descriptor_pb2.FieldDescriptorProto) -> descriptor_pb2.DescriptorProto:
    message = descriptor_pb2.DescriptorProto(name=name)
    message.field.extend(fields)
    return message


def _file(package: str, *messages: descriptor_pb2.DescriptorProto) -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(name=f"{package}.proto", package=package, syntax="proto3")
    file_proto.message_type.extend(messages)
    return file_proto


_TEXT_FILE = _file(
    "text",
    _message("TextResponse", _field("content", 1, _Field.TYPE_STRING)),
)

_MEDIA_FILE = _file(
    "media",
    _message(
        "MediaResponse",
        _field("data", 1, _Field.TYPE_BYTES),
        _field("content_type", 2, _Field.TYPE_STRING),
    ),
)

_BLOG_FILE = _file(
    "blog",
    _message(
        "Author",
        _field("name", 1, _Field.TYPE_STRING),
        _field("email", 2, _Field.TYPE_STRING),
    ),
    _message(
        "Section",
        _field("heading", 1, _Field.TYPE_STRING),
        _field("body", 2, _Field.TYPE_STRING),
    ),
    _message(
        "Media",
        _field("image_url", 1, _Field.TYPE_STRING),
        _field("audio_url", 2, _Field.TYPE_STRING),
        _field("video_url", 3, _Field.TYPE_STRING),
    ),
    _message(
        "Metadata",
        _field("tags", 1, _Field.TYPE_STRING, label=_REPEATED),
        _field("word_count", 2, _Field.TYPE_INT32),
    ),
    _message(
        "BlogPost",
        _field("id", 1, _Field.TYPE_INT32),
        _field("title", 2, _Field.TYPE_STRING),
        _field("author", 3, _Field.TYPE_MESSAGE, type_name=".blog.Author"),
        _field("sections", 4, _Field.TYPE_MESSAGE, label=_REPEATED, type_name=".blog.Section"),
        _field("media", 5, _Field.TYPE_MESSAGE, type_name=".blog.Media"),
        _field("metadata", 6, _Field.TYPE_MESSAGE, type_name=".blog.Metadata"),
        _field("published_at", 7, _Field.TYPE_STRING),
    ),
    _message(
        "BlogPostsResponse",
        _field("posts", 1, _Field.TYPE_MESSAGE, label=_REPEATED, type_name=".blog.BlogPost"),
    ),
)

_pool = descriptor_pool.DescriptorPool()
for _file_proto in (_TEXT_FILE, _MEDIA_FILE, _BLOG_FILE):
    _pool.AddSerializedFile(_file_proto.SerializeToString())


def _message_class(full_name: str):
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(full_name))


TextResponse = _message_class("text.TextResponse")
MediaResponse = _message_class("media.MediaResponse")
Author = _message_class("blog.Author")
Section = _message_class("blog.Section")
Media = _message_class("blog.Media")
Metadata = _message_class("blog.Metadata")
BlogPost = _message_class("blog.BlogPost")
BlogPostsResponse = _message_class("blog.BlogPostsResponse")
