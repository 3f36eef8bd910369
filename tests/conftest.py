"""Shared fixtures: a scripted fake of the Voia API on httpx.MockTransport."""

from typing import Callable, Union

import httpx
import pytest

from voialink.config import Settings
from voialink.services.host import RenderDelegate

Responder = Callable[[httpx.Request], httpx.Response]

SIGNED_URL = "https://storage.example.com/upload/vid-1.mp3?sig=abc"


def respond(status: int = 200, text: str = None, json=None) -> Responder:
    """Build a responder that returns a fresh response on every call."""
    def _responder(request: httpx.Request) -> httpx.Response:
        if json is not None:
            return httpx.Response(status, json=json)
        return httpx.Response(status, text=text or "")
    return _responder


def fail_with(exc_type=httpx.ConnectError) -> Responder:
    def _responder(request: httpx.Request) -> httpx.Response:
        raise exc_type("boom", request=request)
    return _responder


class FakeVoiaApi:
    """Records requests and answers them from per-route scripts.

    A route maps to one responder or a list of responders consumed in
    order; the last one repeats. Unrouted requests get HTTP 404.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Union[Responder, list[Responder]]] = {}

    def route(self, method: str, path: str, *responders: Responder) -> None:
        self.routes[(method, path)] = list(responders)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        script = self.routes.get((request.method, request.url.path))
        if not script:
            return httpx.Response(404)
        responder = script.pop(0) if len(script) > 1 else script[0]
        return responder(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path == path
        ]

    def happy_path(self, video_id: str = "vid-1") -> None:
        self.route("POST", "/api/project", respond(text=video_id))
        self.route("GET", "/api/signurl", respond(text=SIGNED_URL))
        self.route("PUT", "/upload/vid-1.mp3", respond())
        self.route("POST", "/api/copyaudio", respond())


class RecordingDelegate(RenderDelegate):
    def __init__(self):
        self.events: list[tuple] = []

    def video_render_did_start(self, video_id):
        self.events.append(("started", video_id))

    def video_render_did_progress(self, video_id, progress):
        self.events.append(("progress", video_id, progress))

    def video_render_did_fail(self, video_id, error):
        self.events.append(("failed", video_id, error))

    def video_render_did_complete(self, video_id, public_url):
        self.events.append(("complete", video_id, public_url))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_base_url="https://api.voia.test",
        poll_interval=0.01,
        status_retry_attempts=1,
        status_retry_backoff=0,
    )


@pytest.fixture
def api() -> FakeVoiaApi:
    return FakeVoiaApi()


@pytest.fixture
def delegate() -> RecordingDelegate:
    return RecordingDelegate()
