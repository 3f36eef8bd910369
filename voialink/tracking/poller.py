"""Per-video render status poller.

Each tracked video owns one ``StatusPoller``. Once started, it polls the
progress endpoint every ``poll_interval`` seconds until the render reaches a
terminal state, and reports lifecycle events to the session delegate.

State machine:
    Unknown ──> RenderInProgress(p) ──> RenderComplete(url)
       │               │  ^
       │               └──┘ (progress updates)
       └───────────────┴──> RenderError(msg)

Sample interpretation (first matching rule wins):
    1. progress < 0                  → RenderError("Project not found")
    2. progress == 1 and url present → RenderComplete(url)
    3. cinematic id present          → RenderInProgress(progress),
                                       "started" the first time, "progress" after
    4. otherwise                     → no change
"""

import asyncio
import logging
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from voialink.config import Settings, get_settings
from voialink.schemas.status import (
    RenderComplete,
    RenderError,
    RenderInProgress,
    StatusSample,
    Unknown,
    VideoStatus,
)
from voialink.services.host import RenderDelegate
from voialink.services.voia_client import VoiaClient

logger = logging.getLogger(__name__)

PROJECT_NOT_FOUND = "Project not found"
STATUS_UNAVAILABLE = "Status unavailable"

DelegateGetter = Callable[[], Optional[RenderDelegate]]


def _no_delegate() -> Optional[RenderDelegate]:
    return None


class StatusPoller:
    """Tracks the render status of one video.

    Ticks are strictly sequential: the next sleep starts only after the
    previous status request has resolved. The loop ends by itself on a
    terminal status; ``cancel()`` abandons tracking without touching status.
    """

    def __init__(
        self,
        video_id: str,
        client: VoiaClient,
        delegate_getter: DelegateGetter = _no_delegate,
        settings: Optional[Settings] = None,
    ):
        self.video_id = video_id
        self.client = client
        self.settings = settings or get_settings()
        self._delegate_getter = delegate_getter
        self.status: VideoStatus = Unknown()
        self.cinematic_id: Optional[str] = None
        self.consecutive_failures = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_polling(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Schedule the polling loop on the running event loop.

        Outside a running loop nothing is scheduled and False is returned;
        the registry retries on the next lookup made from inside the loop.
        The first tick fires after one full interval, not immediately.
        """
        if self._task is not None or self.status.is_terminal:
            return False
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; deferring tracking of %s", self.video_id)
            return False
        self._task = loop.create_task(
            self._run(), name=f"voialink-poll-{self.video_id}",
        )
        logger.info("progress tracker created for %s", self.video_id)
        return True

    def cancel(self) -> bool:
        """Stop polling without changing status. Returns True if a loop was stopped."""
        if not self.is_polling:
            return False
        self._task.cancel()
        logger.info("Stopped tracking %s (status=%s)", self.video_id, self.status.kind)
        return True

    async def _run(self) -> None:
        interval = self.settings.poll_interval
        while not self.status.is_terminal:
            await asyncio.sleep(interval)
            if self.status.is_terminal:
                break
            await self.tick()
        logger.debug("Poll loop for %s finished (%s)", self.video_id, self.status.kind)

    async def tick(self) -> None:
        """Run one status request and apply its result."""
        try:
            sample = await self.client.fetch_status(self.video_id, self.cinematic_id)
        except (httpx.HTTPError, ValidationError) as e:
            self._record_failure(e)
            return
        self.consecutive_failures = 0
        self.apply_sample(sample)

    def apply_sample(self, sample: StatusSample) -> None:
        """Advance the state machine with one status sample."""
        if self.status.is_terminal:
            return

        logger.debug(
            "progress for video %s: %s. id %s",
            self.video_id, sample.progress, sample.cinematic_id or "None",
        )

        if sample.progress < 0:
            self._fail(PROJECT_NOT_FOUND)
        elif sample.progress == 1 and sample.url is not None:
            self.status = RenderComplete(url=sample.url)
            self._stop_loop()
            logger.info("Render complete for %s: %s", self.video_id, sample.url)
            self._notify("video_render_did_complete", sample.url)
        elif sample.cinematic_id is not None:
            first_sighting = self.cinematic_id is None
            self.cinematic_id = sample.cinematic_id
            self.status = RenderInProgress(progress=sample.progress)
            if first_sighting:
                logger.info(
                    "Render started for %s (cinematic %s)",
                    self.video_id, sample.cinematic_id,
                )
                self._notify("video_render_did_start")
            else:
                self._notify("video_render_did_progress", sample.progress)

    def _record_failure(self, exc: BaseException) -> None:
        self.consecutive_failures += 1
        count = self.consecutive_failures
        if count % self.settings.poll_failure_warn_every == 0:
            logger.warning(
                "Status poll for %s failed %d times in a row: %s",
                self.video_id, count, exc,
            )
        else:
            logger.debug("Status poll for %s failed: %s", self.video_id, exc)

        limit = self.settings.poll_failure_limit
        if limit is not None and count >= limit:
            self._fail(STATUS_UNAVAILABLE)

    def _fail(self, message: str) -> None:
        self.status = RenderError(message=message)
        self._stop_loop()
        logger.error("Render failed for %s: %s", self.video_id, message)
        self._notify("video_render_did_fail", message)

    def _stop_loop(self) -> None:
        # Inside the loop's own tick the while-condition ends it.
        if self.is_polling and self._task is not asyncio.current_task():
            self._task.cancel()

    def _notify(self, event: str, *args) -> None:
        delegate = self._delegate_getter()
        if delegate is None:
            return
        try:
            getattr(delegate, event)(self.video_id, *args)
        except Exception:
            logger.exception("Delegate %s raised for %s", event, self.video_id)
