"""Video creation pipeline: create project → sign URL → upload audio.

Steps run strictly in sequence and each is gated on the previous one. The
first failure aborts the rest and surfaces as a single ``ApiCallFailed``.

Usage:
    from voialink.pipeline.create_video import create_video

    video_id = await create_video(client, "file:///tmp/song.mp3", video_name="My Song")
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote, urlparse

import httpx

from voialink.errors import ApiCallFailed
from voialink.services.voia_client import VoiaClient

logger = logging.getLogger(__name__)

AudioSource = Union[str, os.PathLike]

AUDIO_EXT = "mp3"


def is_local_source(source: AudioSource) -> bool:
    """Return True if ``source`` names a local file rather than a remote URL.

    Paths and ``file://`` URLs are local; any other URL scheme is remote.
    A bare string without a scheme is treated as a filesystem path.
    """
    if isinstance(source, os.PathLike):
        return True
    scheme = urlparse(source).scheme
    # A single letter is a Windows drive, not a scheme
    return scheme in ("", "file") or len(scheme) == 1


def local_path(source: AudioSource) -> Path:
    """Resolve a local audio source to a filesystem path."""
    if isinstance(source, os.PathLike):
        return Path(source)
    parsed = urlparse(source)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(source)


async def _upload(client: VoiaClient, audio_source: AudioSource, signed_url: str) -> None:
    if is_local_source(audio_source):
        path = local_path(audio_source)
        try:
            audio_bytes = path.read_bytes()
        except OSError as e:
            logger.error("Failed to read audio file %s: %s", path, e)
            raise ApiCallFailed("upload", f"Failed to read audio file {path}") from e
        logger.info("uploading from %s", path)
        try:
            await client.upload_audio(signed_url, audio_bytes)
        except httpx.HTTPError as e:
            logger.error("Failed to upload audio: %s", e)
            raise ApiCallFailed("upload", "Failed to upload audio") from e
    else:
        src = str(audio_source)
        logger.info("copying from %s", src)
        try:
            await client.copy_audio(src, signed_url)
        except httpx.HTTPError as e:
            logger.error("Failed to copy audio: %s", e)
            raise ApiCallFailed("upload", "Failed to copy audio") from e


async def create_video(
    client: VoiaClient,
    audio_source: AudioSource,
    video_name: Optional[str] = None,
    screen_name: Optional[str] = None,
) -> str:
    """Create a render project and attach its soundtrack.

    Args:
        client: Authenticated API client.
        audio_source: Local path, ``file://`` URL, or ``http(s)://`` URL of
            the soundtrack. Local files are uploaded; remote URLs are
            copied server-side.
        video_name: Name embedded on the video (sent as ``song``).
        screen_name: User screen name embedded on the video (sent as ``artist``).

    Returns:
        The new video ID.

    Raises:
        ApiCallFailed: If any step fails or returns an unusable payload.
    """
    logger.info("creating a project")
    try:
        video_id = await client.create_project(song=video_name, artist=screen_name)
    except httpx.HTTPError as e:
        logger.error("Failed to create project: %s", e)
        raise ApiCallFailed("create_project", "Failed to create project") from e
    if not video_id:
        raise ApiCallFailed("create_project", "No video ID in create project response")
    logger.info("project created: %s", video_id)

    try:
        signed_url = await client.sign_upload_url(video_id, AUDIO_EXT)
    except httpx.HTTPError as e:
        logger.error("Failed to sign URL for %s: %s", video_id, e)
        raise ApiCallFailed("sign_url", "Failed to sign upload URL") from e
    if not signed_url:
        raise ApiCallFailed("sign_url", "No signed URL in response")

    await _upload(client, audio_source, signed_url)
    logger.info("audio attached to %s", video_id)
    return video_id
