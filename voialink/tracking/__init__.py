"""Render progress tracking: per-video pollers and their registry."""

from voialink.tracking.poller import StatusPoller
from voialink.tracking.registry import TrackerRegistry

__all__ = ["StatusPoller", "TrackerRegistry"]
