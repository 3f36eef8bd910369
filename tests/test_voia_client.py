"""Tests for the Voia API transport client."""

import httpx
import pytest

from conftest import SIGNED_URL, fail_with, respond
from voialink.services.voia_client import VoiaClient


def _client(api, settings) -> VoiaClient:
    return VoiaClient("s3cret", settings, transport=api.transport())


@pytest.mark.asyncio
async def test_create_project_sends_bearer_and_present_fields_only(api, settings):
    api.route("POST", "/api/project", respond(text="vid-1\n"))
    async with _client(api, settings) as client:
        video_id = await client.create_project(song="My Song")

    assert video_id == "vid-1"
    (request,) = api.requests
    assert request.headers["Authorization"] == "bearer s3cret"
    assert request.url.params.get("song") == "My Song"
    assert "artist" not in request.url.params


@pytest.mark.asyncio
async def test_create_project_empty_body_returns_none(api, settings):
    api.route("POST", "/api/project", respond(text=""))
    async with _client(api, settings) as client:
        assert await client.create_project() is None


@pytest.mark.asyncio
async def test_create_project_raises_on_http_error(api, settings):
    api.route("POST", "/api/project", respond(500))
    async with _client(api, settings) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await client.create_project(song="x", artist="y")
    assert len(api.requests) == 1


@pytest.mark.asyncio
async def test_sign_upload_url_params(api, settings):
    api.route("GET", "/api/signurl", respond(text=SIGNED_URL))
    async with _client(api, settings) as client:
        url = await client.sign_upload_url("vid-1")

    assert url == SIGNED_URL
    params = api.requests[0].url.params
    assert params["videoid"] == "vid-1"
    assert params["ext"] == "mp3"


@pytest.mark.asyncio
async def test_upload_audio_is_single_multipart_put(api, settings):
    api.route("PUT", "/upload/vid-1.mp3", respond())
    async with _client(api, settings) as client:
        await client.upload_audio(SIGNED_URL, b"ID3-audio-bytes")

    (request,) = api.requests
    assert request.method == "PUT"
    assert str(request.url) == SIGNED_URL
    body = request.content
    assert b'name="key"; filename="audio.mp3"' in body
    assert b"Content-Type: audio/mpeg" in body
    assert b"ID3-audio-bytes" in body


@pytest.mark.asyncio
async def test_copy_audio_params(api, settings):
    api.route("POST", "/api/copyaudio", respond())
    async with _client(api, settings) as client:
        await client.copy_audio("https://cdn.example.com/song.mp3", SIGNED_URL)

    params = api.requests[0].url.params
    assert params["src"] == "https://cdn.example.com/song.mp3"
    assert params["dest"] == SIGNED_URL


@pytest.mark.asyncio
async def test_fetch_status_parses_camel_case(api, settings):
    api.route(
        "GET", "/api/progress",
        respond(json={"cinematicId": "c1", "url": None, "progress": 0.3}),
    )
    async with _client(api, settings) as client:
        sample = await client.fetch_status("vid-1", "c1")

    assert sample.cinematic_id == "c1"
    assert sample.url is None
    assert sample.progress == 0.3
    params = api.requests[0].url.params
    assert params["project"] == "vid-1"
    assert params["cinematic"] == "c1"


@pytest.mark.asyncio
async def test_fetch_status_omits_unknown_cinematic_id(api, settings):
    api.route("GET", "/api/progress", respond(json={"progress": 0}))
    async with _client(api, settings) as client:
        sample = await client.fetch_status("vid-1")

    assert sample.cinematic_id is None
    assert "cinematic" not in api.requests[0].url.params


@pytest.mark.asyncio
async def test_fetch_status_maps_400_to_not_found(api, settings):
    api.route("GET", "/api/progress", respond(400))
    async with _client(api, settings) as client:
        sample = await client.fetch_status("missing")

    assert sample.progress == -1
    assert sample.cinematic_id is None


@pytest.mark.asyncio
async def test_fetch_status_retries_transient_errors(api, settings):
    settings = settings.model_copy(update={"status_retry_attempts": 3})
    api.route(
        "GET", "/api/progress",
        respond(503), fail_with(httpx.ConnectError), respond(json={"progress": 0.5}),
    )
    async with _client(api, settings) as client:
        sample = await client.fetch_status("vid-1")

    assert sample.progress == 0.5
    assert len(api.requests) == 3


@pytest.mark.asyncio
async def test_fetch_status_does_not_retry_client_errors(api, settings):
    settings = settings.model_copy(update={"status_retry_attempts": 3})
    api.route("GET", "/api/progress", respond(404))
    async with _client(api, settings) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await client.fetch_status("vid-1")

    assert len(api.requests) == 1
