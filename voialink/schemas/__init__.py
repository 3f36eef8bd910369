from voialink.schemas.status import (
    RenderComplete,
    RenderError,
    RenderInProgress,
    StatusSample,
    Unknown,
    VideoStatus,
)

__all__ = [
    "RenderComplete",
    "RenderError",
    "RenderInProgress",
    "StatusSample",
    "Unknown",
    "VideoStatus",
]
