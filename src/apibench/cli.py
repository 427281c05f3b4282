"""Typer CLI entrypoint for apibench."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from pydantic import ValidationError

from apibench.backends import open_backends
from apibench.config import (
    DEFAULT_GRAPHQL_URL,
    DEFAULT_GRPC_WEB_URL,
    DEFAULT_REST_URL,
    EndpointConfig,
    GraphQLDialect,
)
from apibench.dispatcher import fetch_service, fetch_service_parallel, summarize
from apibench.errors import ApiBenchError
from apibench.media import save_media
from apibench.models import MediaHandle, ResultEnvelope
from apibench.renderer import describe_envelope, describe_summary

app = typer.Typer(help="Fetch the same payload over REST, GraphQL or gRPC-Web and compare.", no_args_is_help=True)

_DEFAULT_SIZES = {"text": "large", "media": "image"}


@app.callback()
def main() -> None:
    """apibench command group."""


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("apibench")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _build_config(
    rest_url: str,
    graphql_url: str,
    grpc_web_url: str,
    graphql_dialect: GraphQLDialect,
    timeout_seconds: float | None,
    media_dir: Path | None,
) -> EndpointConfig:
    try:
        return EndpointConfig(
            rest_base_url=rest_url,
            graphql_url=graphql_url,
            grpc_web_url=grpc_web_url,
            graphql_dialect=graphql_dialect,
            timeout_seconds=timeout_seconds,
            media_dir=media_dir,
        )
    except ValidationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc


def _resolve_size(service: str, size: str | None) -> str | None:
    if size is not None:
        return size
    return _DEFAULT_SIZES.get(service.strip().lower())


async def _fetch_one(config: EndpointConfig, transport: str, service: str, size: str | None) -> ResultEnvelope:
    async with open_backends(config) as backends:
        return await fetch_service(transport, service, size, backends)


async def _fetch_many(
    config: EndpointConfig, transport: str, service: str, size: str | None, count: int
) -> list[ResultEnvelope]:
    async with open_backends(config) as backends:
        return await fetch_service_parallel(transport, service, size, count, backends)


@app.command()
def fetch(
    transport: str = typer.Option("REST", "--transport", "-t", help="REST, GraphQL or gRPC-Web."),
    service: str = typer.Option("Text", "--service", "-s", help="Text, Media or Blog."),
    size: str | None = typer.Option(None, help="small/medium/large for Text, image/audio/video for Media."),
    save: Path | None = typer.Option(None, dir_okay=False, help="Copy fetched media to this path."),
    keep_media: bool = typer.Option(False, help="Do not release the temporary media file."),
    rest_url: str = typer.Option(DEFAULT_REST_URL, envvar="APIBENCH_REST_URL"),
    graphql_url: str = typer.Option(DEFAULT_GRAPHQL_URL, envvar="APIBENCH_GRAPHQL_URL"),
    grpc_web_url: str = typer.Option(DEFAULT_GRPC_WEB_URL, envvar="APIBENCH_GRPC_WEB_URL"),
    graphql_dialect: GraphQLDialect = typer.Option(GraphQLDialect.POSTS, envvar="APIBENCH_GRAPHQL_DIALECT"),
    timeout_seconds: float | None = typer.Option(None, envvar="APIBENCH_TIMEOUT_SECONDS"),
    media_dir: Path | None = typer.Option(None, file_okay=False, envvar="APIBENCH_MEDIA_DIR"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Fetch one payload and print its latency/size report."""

    _configure_logging(verbose)
    config = _build_config(rest_url, graphql_url, grpc_web_url, graphql_dialect, timeout_seconds, media_dir)

    try:
        envelope = asyncio.run(_fetch_one(config, transport, service, _resolve_size(service, size)))
    except ApiBenchError as exc:
        typer.echo(f"Fetch failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(describe_envelope(envelope))

    if not isinstance(envelope.payload, MediaHandle):
        if save is not None:
            typer.echo(f"Warning: --save only applies to Media; nothing written to {save}", err=True)
        return

    try:
        if save is not None:
            typer.echo(f"Saved: {save_media(envelope.payload, save)}")
    except OSError as exc:
        typer.echo(f"Could not save media to {save}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        if keep_media:
            typer.echo(f"Kept: {envelope.payload.path}")
        else:
            envelope.release()


@app.command()
def bench(
    transport: str = typer.Option("REST", "--transport", "-t", help="REST, GraphQL or gRPC-Web."),
    service: str = typer.Option("Text", "--service", "-s", help="Text, Media or Blog."),
    size: str | None = typer.Option(None, help="small/medium/large for Text, image/audio/video for Media."),
    count: int = typer.Option(10, min=1, max=1000, help="Number of concurrent identical requests."),
    rest_url: str = typer.Option(DEFAULT_REST_URL, envvar="APIBENCH_REST_URL"),
    graphql_url: str = typer.Option(DEFAULT_GRAPHQL_URL, envvar="APIBENCH_GRAPHQL_URL"),
    grpc_web_url: str = typer.Option(DEFAULT_GRPC_WEB_URL, envvar="APIBENCH_GRPC_WEB_URL"),
    graphql_dialect: GraphQLDialect = typer.Option(GraphQLDialect.POSTS, envvar="APIBENCH_GRAPHQL_DIALECT"),
    timeout_seconds: float | None = typer.Option(None, envvar="APIBENCH_TIMEOUT_SECONDS"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Issue COUNT identical requests concurrently and summarize latency."""

    _configure_logging(verbose)
    config = _build_config(rest_url, graphql_url, grpc_web_url, graphql_dialect, timeout_seconds, None)

    try:
        envelopes = asyncio.run(_fetch_many(config, transport, service, _resolve_size(service, size), count))
    except ApiBenchError as exc:
        typer.echo(f"Benchmark failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    try:
        typer.echo(describe_summary(summarize(envelopes)))
    finally:
        for envelope in envelopes:
            envelope.release()
