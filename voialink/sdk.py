"""Voia Link SDK session facade.

The host constructs one ``VoiaLink`` session, registers the client secret
provided by Voia, and passes the session around by reference.

Usage:
    sdk = VoiaLink(launcher=open_in_browser)
    sdk.register("my-secret")
    sdk.delegate = MyRenderDelegate()

    video_id = await sdk.create_video("file:///tmp/song.mp3", video_name="My Song")
    status = sdk.status_for(video_id)
"""

import asyncio
import logging
from typing import Literal, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict

from voialink.config import Settings, get_settings
from voialink.errors import MissingClientSecret
from voialink.pipeline.create_video import AudioSource, create_video
from voialink.schemas.status import RenderComplete, VideoStatus
from voialink.services.host import (
    Launcher,
    RenderDelegate,
    Sharer,
    log_launcher,
    log_sharer,
)
from voialink.services.voia_client import VoiaClient
from voialink.tracking.poller import StatusPoller
from voialink.tracking.registry import TrackerRegistry

logger = logging.getLogger(__name__)


class Instagram(BaseModel):
    """Share through a locally installed Instagram app (needs a Meta app ID)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["instagram"] = "instagram"
    instagram_app_id: str


class System(BaseModel):
    """Share through the standard system share sheet."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["system"] = "system"


ShareMethod = Union[Instagram, System]


class VoiaLink:
    """One SDK session: the registered secret, the API client and all trackers.

    ``delegate`` may be replaced or cleared at any time; pollers look it up
    on every event.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        launcher: Launcher = log_launcher,
        sharer: Sharer = log_sharer,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.launcher = launcher
        self.sharer = sharer
        self.delegate: Optional[RenderDelegate] = None
        self._transport = transport
        self._client: Optional[VoiaClient] = None
        self._trackers: Optional[TrackerRegistry] = None
        self._retired_clients: list[VoiaClient] = []
        self._closing: set[asyncio.Task] = set()

    @property
    def is_registered(self) -> bool:
        return self._client is not None

    def register(self, client_secret_key: str) -> None:
        """Register the client secret key provided by Voia.

        Must be called before any other operation. Registering again
        replaces the session context and stops the previous trackers.
        """
        if self._client is not None:
            self._discard_session()
        self._client = VoiaClient(client_secret_key, self.settings, transport=self._transport)
        self._trackers = TrackerRegistry(self._build_poller)
        logger.info("secret registered")

    def _discard_session(self) -> None:
        old_client, old_trackers = self._client, self._trackers
        self._client = None
        self._trackers = None
        old_trackers.cancel_all()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Closed by the next close() call
            self._retired_clients.append(old_client)
            return
        task = loop.create_task(old_client.close())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    def _require_session(self) -> tuple[VoiaClient, TrackerRegistry]:
        if self._client is None or self._trackers is None:
            raise MissingClientSecret()
        return self._client, self._trackers

    def _build_poller(self, video_id: str) -> StatusPoller:
        return StatusPoller(
            video_id,
            self._client,
            delegate_getter=lambda: self.delegate,
            settings=self.settings,
        )

    def redirect_url(self, video_id: str) -> str:
        """Deep link that opens (or installs) the Voia app for ``video_id``."""
        return self.settings.redirect_url_template.format(video_id=video_id)

    async def create_video(
        self,
        audio_source: AudioSource,
        video_name: Optional[str] = None,
        screen_name: Optional[str] = None,
    ) -> str:
        """Start creating a new video and redirect the user to the Voia app.

        Args:
            audio_source: Soundtrack as a local path, ``file://``,
                ``http://`` or ``https://`` URL.
            video_name: Name embedded on the video, e.g. the song name.
            screen_name: User screen name embedded on the video.

        Returns:
            The video ID used to track render status.

        Raises:
            MissingClientSecret: If ``register`` was not called.
            ApiCallFailed: If any network step failed. No redirect happens
                and nothing is tracked.
        """
        client, trackers = self._require_session()
        video_id = await create_video(client, audio_source, video_name, screen_name)
        trackers.get_or_create(video_id)
        url = self.redirect_url(video_id)
        try:
            self.launcher(url)
        except Exception:
            logger.exception("Launcher failed to open %s", url)
        return video_id

    def status_for(self, video_id: str) -> VideoStatus:
        """Current render status of a video.

        Unknown IDs start being tracked on first query. Called outside a
        running event loop, the tracker is registered in ``Unknown`` and
        starts polling on the next lookup made from inside the loop.

        Raises:
            MissingClientSecret: If ``register`` was not called.
        """
        _, trackers = self._require_session()
        return trackers.get_or_create(video_id).status

    def tracker(self, video_id: str) -> StatusPoller:
        _, trackers = self._require_session()
        return trackers.get_or_create(video_id)

    def stop_tracking(self, video_id: str) -> bool:
        """Abandon tracking of a video without changing its status.

        No delegate event is sent. Returns True if a running poll loop was
        stopped.
        """
        _, trackers = self._require_session()
        poller = trackers.get(video_id)
        return poller.cancel() if poller is not None else False

    def download_video(self, video_id: str) -> Optional[str]:
        """Public URL of the rendered video, or None if it is not ready."""
        status = self.status_for(video_id)
        if isinstance(status, RenderComplete):
            return status.url
        return None

    def share(self, video_id: str, method: ShareMethod) -> None:
        """Share a rendered video out of the app through the host sharer.

        Does nothing if the SDK is not registered or the render is not
        complete yet.
        """
        if not self.is_registered:
            return
        url = self.download_video(video_id)
        if url is None:
            logger.info("Video %s is not ready to share", video_id)
            return
        self.sharer(url, method)

    async def close(self) -> None:
        """Stop all trackers and close every HTTP client this session opened."""
        if self._client is not None:
            self._discard_session()
        retired, self._retired_clients = self._retired_clients, []
        for client in retired:
            await client.close()
        if self._closing:
            await asyncio.gather(*self._closing)

    async def __aenter__(self) -> "VoiaLink":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
