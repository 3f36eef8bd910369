"""Voia cloud API client.

Provides:
- Project creation and signed upload URL issuance
- Audio upload (multipart PUT) and server-side audio copy
- Render progress polling with retry on transient errors

Usage:
    from voialink.services.voia_client import VoiaClient

    async with VoiaClient(secret_key, settings) as client:
        video_id = await client.create_project(song="My Song", artist="Me")
        signed_url = await client.sign_upload_url(video_id)
        await client.upload_audio(signed_url, audio_bytes)
        sample = await client.fetch_status(video_id)
"""

import logging
from typing import Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from voialink.config import Settings, get_settings
from voialink.schemas.status import StatusSample

logger = logging.getLogger(__name__)

UPLOAD_FIELD_NAME = "key"
UPLOAD_FILENAME = "audio.mp3"
UPLOAD_MIME_TYPE = "audio/mpeg"


def _is_retriable(exc: BaseException) -> bool:
    """Return True only for transient errors worth retrying (429, 5xx, network)."""
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        return code == 429 or code >= 500
    if isinstance(exc, httpx.TransportError):
        return True
    return False


class VoiaClient:
    """Async client for the Voia cloud API (api.voia.com).

    Every request carries ``Authorization: bearer <secret>``. Pipeline
    calls are issued exactly once; only the idempotent status read is
    retried.
    """

    def __init__(self, secret_key: str, settings: Optional[Settings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.secret_key = secret_key
        self.settings = settings or get_settings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self.settings.api_base_url

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Authorization": f"bearer {self.secret_key}"},
                follow_redirects=True,
                timeout=httpx.Timeout(
                    self.settings.request_timeout,
                    connect=self.settings.connect_timeout,
                ),
                transport=self._transport,
            )
        return self._client

    async def create_project(
        self,
        song: Optional[str] = None,
        artist: Optional[str] = None,
    ) -> Optional[str]:
        """Create a render project.

        Absent metadata fields are omitted from the request. Returns the
        new video ID from the raw response body, or None if the body is
        empty.
        """
        params: dict[str, str] = {}
        if artist is not None:
            params["artist"] = artist
        if song is not None:
            params["song"] = song
        logger.info("POST %s/api/project fields=%s", self.base_url, sorted(params))
        response = await self.client.post("/api/project", params=params)
        logger.info("  create response: HTTP %d", response.status_code)
        response.raise_for_status()
        return response.text.strip() or None

    async def sign_upload_url(self, video_id: str, ext: str = "mp3") -> Optional[str]:
        """Request a write-capable signed URL for the project's audio."""
        logger.info("GET %s/api/signurl videoid=%s ext=%s", self.base_url, video_id, ext)
        response = await self.client.get(
            "/api/signurl", params={"videoid": video_id, "ext": ext},
        )
        logger.info("  signurl response: HTTP %d", response.status_code)
        response.raise_for_status()
        return response.text.strip() or None

    async def upload_audio(self, dest: str, audio_bytes: bytes) -> None:
        """PUT audio bytes to a signed URL as a single multipart upload."""
        logger.info("PUT signed upload size=%d bytes", len(audio_bytes))
        response = await self.client.put(
            dest,
            files={UPLOAD_FIELD_NAME: (UPLOAD_FILENAME, audio_bytes, UPLOAD_MIME_TYPE)},
        )
        logger.info("  upload response: HTTP %d", response.status_code)
        response.raise_for_status()

    async def copy_audio(self, src: str, dest: str) -> None:
        """Ask the server to copy remote audio at ``src`` to the signed ``dest``."""
        logger.info("POST %s/api/copyaudio src=%s", self.base_url, src)
        response = await self.client.post(
            "/api/copyaudio", params={"src": src, "dest": dest},
        )
        logger.info("  copy response: HTTP %d", response.status_code)
        response.raise_for_status()

    async def fetch_status(
        self,
        video_id: str,
        cinematic_id: Optional[str] = None,
    ) -> StatusSample:
        """Fetch render progress for a project.

        HTTP 400 means the server does not know the project and is mapped
        to ``StatusSample.not_found()``. Transient failures are retried;
        anything else propagates to the caller.
        """
        params: dict[str, str] = {"project": video_id}
        if cinematic_id is not None:
            params["cinematic"] = cinematic_id

        @retry(
            stop=stop_after_attempt(self.settings.status_retry_attempts),
            wait=wait_exponential(
                multiplier=self.settings.status_retry_backoff, min=0, max=30,
            ),
            retry=retry_if_exception(_is_retriable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async def _call() -> StatusSample:
            response = await self.client.get("/api/progress", params=params)
            logger.debug(
                "GET %s/api/progress project=%s HTTP %d",
                self.base_url, video_id, response.status_code,
            )
            if response.status_code == 400:
                return StatusSample.not_found()
            response.raise_for_status()
            return StatusSample.model_validate_json(response.content)

        return await _call()

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "VoiaClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
