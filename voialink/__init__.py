"""Voia Link SDK - create Voia videos from a soundtrack and track their cloud render.

Register the client secret key provided by Voia on a ``VoiaLink`` session,
then call ``create_video`` and follow progress through ``status_for`` or a
``RenderDelegate``.
"""

from voialink.errors import ApiCallFailed, MissingClientSecret, VoiaSDKError
from voialink.schemas.status import (
    RenderComplete,
    RenderError,
    RenderInProgress,
    Unknown,
    VideoStatus,
)
from voialink.sdk import Instagram, ShareMethod, System, VoiaLink
from voialink.services.host import RenderDelegate

__version__ = "0.1.0"

__all__ = [
    "ApiCallFailed",
    "Instagram",
    "MissingClientSecret",
    "RenderComplete",
    "RenderDelegate",
    "RenderError",
    "RenderInProgress",
    "ShareMethod",
    "System",
    "Unknown",
    "VideoStatus",
    "VoiaLink",
    "VoiaSDKError",
]
