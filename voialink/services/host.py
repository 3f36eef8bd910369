"""Host application collaborators.

The SDK never touches UI directly. Rendering events go to a
``RenderDelegate``; opening the Voia app and sharing a finished video are
delegated to plain callables supplied by the host.
"""

import logging
from abc import ABC
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from voialink.sdk import ShareMethod

logger = logging.getLogger(__name__)

Launcher = Callable[[str], None]
Sharer = Callable[[str, "ShareMethod"], None]


class RenderDelegate(ABC):
    """Receiver for cloud render lifecycle events.

    Override only the callbacks you need; the defaults do nothing. For a
    given video, ``video_render_did_start`` fires at most once and before
    any progress event, and nothing fires after complete or fail.
    """

    def video_render_did_start(self, video_id: str) -> None:
        """High quality cloud render started. It can take several minutes."""

    def video_render_did_progress(self, video_id: str, progress: float) -> None:
        """Render progress changed; ``progress`` is between 0 and 1."""

    def video_render_did_fail(self, video_id: str, error: str) -> None:
        """Render failed with ``error``."""

    def video_render_did_complete(self, video_id: str, public_url: str) -> None:
        """Render finished and the video is downloadable at ``public_url``."""


def log_launcher(url: str) -> None:
    """Default launcher: the host did not provide one, so just log the URL."""
    logger.info("redirect to %s", url)


def log_sharer(url: str, method: "ShareMethod") -> None:
    logger.info("share %s via %s (no sharer configured)", url, method)
