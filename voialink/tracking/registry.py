"""Registry of status pollers, one per video ID."""

import logging
from typing import Callable, Iterator, Optional

from voialink.tracking.poller import StatusPoller

logger = logging.getLogger(__name__)

PollerFactory = Callable[[str], StatusPoller]


class TrackerRegistry:
    """Maps video IDs to their ``StatusPoller``.

    Pollers are created lazily and started on the first lookup made from
    inside the running event loop. Entries are never evicted during a
    session. Lookup and insert happen without an await in
    between, so the first caller for an ID wins on the event loop.
    """

    def __init__(self, factory: PollerFactory):
        self._factory = factory
        self._pollers: dict[str, StatusPoller] = {}

    def get_or_create(self, video_id: str) -> StatusPoller:
        poller = self._pollers.get(video_id)
        if poller is None:
            poller = self._factory(video_id)
            self._pollers[video_id] = poller
        # No-op once running; picks up pollers created outside the event loop
        poller.start()
        return poller

    def get(self, video_id: str) -> Optional[StatusPoller]:
        return self._pollers.get(video_id)

    def cancel_all(self) -> int:
        """Stop every running loop. Returns how many were stopped."""
        stopped = sum(1 for poller in self._pollers.values() if poller.cancel())
        if stopped:
            logger.info("Stopped %d progress trackers", stopped)
        return stopped

    def __contains__(self, video_id: object) -> bool:
        return video_id in self._pollers

    def __len__(self) -> int:
        return len(self._pollers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._pollers)
