from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from typer.testing import CliRunner

from apibench import cli
from apibench.backends import build_backends

runner = CliRunner()


def _patch_backends(monkeypatch, server) -> None:
    @asynccontextmanager
    async def fake_open_backends(config):
        async with httpx.AsyncClient(transport=httpx.MockTransport(server.handle)) as http:
            yield build_backends(http, config)

    monkeypatch.setattr(cli, "open_backends", fake_open_backends)


def test_fetch_prints_report(monkeypatch, server) -> None:
    server.respond("GET", "/text/small", json={"content": "hi"})
    _patch_backends(monkeypatch, server)

    result = runner.invoke(cli.app, ["fetch", "--transport", "REST", "--service", "Text", "--size", "small"])

    assert result.exit_code == 0, result.output
    assert "Response Time: " in result.output
    assert "Payload Size: 2 bytes\n\nPayload:\nhi" in result.output


def test_fetch_media_saves_and_releases(monkeypatch, server, tmp_path: Path) -> None:
    server.respond("GET", "/media/image", content=b"\xff\xd8\xff", headers={"content-type": "image/jpeg"})
    _patch_backends(monkeypatch, server)
    media_dir = tmp_path / "handles"
    output = tmp_path / "image.jpg"

    result = runner.invoke(
        cli.app,
        ["fetch", "-s", "Media", "--size", "image", "--save", str(output), "--media-dir", str(media_dir)],
    )

    assert result.exit_code == 0, result.output
    assert "Media URL: file://" in result.output
    assert output.read_bytes() == b"\xff\xd8\xff"
    assert list(media_dir.iterdir()) == []


def test_fetch_unknown_transport_exits_with_error(monkeypatch, server) -> None:
    _patch_backends(monkeypatch, server)

    result = runner.invoke(cli.app, ["fetch", "--transport", "SOAP"])

    assert result.exit_code == 1
    assert "Unknown API type: SOAP" in result.output
    assert server.requests == []


def test_fetch_rejects_invalid_endpoint(monkeypatch, server) -> None:
    _patch_backends(monkeypatch, server)

    result = runner.invoke(cli.app, ["fetch", "--rest-url", "ftp://example.com"])

    assert result.exit_code == 2


def test_bench_prints_summary(monkeypatch, server) -> None:
    server.respond("POST", "/graphql", json={"data": {"large": {"content": "abc"}}})
    _patch_backends(monkeypatch, server)

    result = runner.invoke(cli.app, ["bench", "--transport", "GraphQL", "--count", "4"])

    assert result.exit_code == 0, result.output
    assert "Requests: 4" in result.output
    assert "Total Payload: 12 bytes" in result.output
    assert len(server.requests) == 4


def test_fetch_media_releases_handle_when_save_fails(monkeypatch, server, tmp_path: Path) -> None:
    server.respond("GET", "/media/audio", content=b"RIFF", headers={"content-type": "audio/wav"})
    _patch_backends(monkeypatch, server)
    media_dir = tmp_path / "handles"
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")

    result = runner.invoke(
        cli.app,
        ["fetch", "-s", "Media", "--size", "audio", "--save", str(blocker / "clip.wav"), "--media-dir", str(media_dir)],
    )

    assert result.exit_code == 1
    assert "Could not save media to" in result.output
    assert list(media_dir.iterdir()) == []


def test_fetch_warns_when_saving_non_media(monkeypatch, server, tmp_path: Path) -> None:
    server.respond("GET", "/text/small", json={"content": "hi"})
    _patch_backends(monkeypatch, server)
    output = tmp_path / "text.bin"

    result = runner.invoke(cli.app, ["fetch", "--size", "small", "--save", str(output)])

    assert result.exit_code == 0, result.output
    assert "--save only applies to Media" in result.output
    assert not output.exists()
