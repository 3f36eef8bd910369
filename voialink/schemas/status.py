"""Pydantic schemas for render status.

``StatusSample`` is the raw payload of one progress poll. ``VideoStatus`` is
the tracked state exposed to the host: a tagged union discriminated on
``kind``.
"""

from typing import Annotated, Literal, Optional, Union

import httpx
from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def _absolute_url(v: str) -> str:
    """Reject render URLs that do not parse as absolute URLs."""
    try:
        url = httpx.URL(v)
    except httpx.InvalidURL as e:
        raise ValueError(f"invalid render URL: {v!r}") from e
    if not url.is_absolute_url:
        raise ValueError(f"render URL is not absolute: {v!r}")
    return v


RenderUrl = Annotated[str, AfterValidator(_absolute_url)]


class StatusSample(BaseModel):
    """One response from the progress endpoint.

    The API uses camelCase keys; attributes are snake_case.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    cinematic_id: Optional[str] = Field(default=None, alias="cinematicId")
    url: Optional[RenderUrl] = None
    progress: float

    @classmethod
    def not_found(cls) -> "StatusSample":
        """Sentinel sample for a project the server does not know (HTTP 400)."""
        return cls(cinematic_id=None, url=None, progress=-1)


class _StatusBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def is_terminal(self) -> bool:
        return False


class Unknown(_StatusBase):
    """No usable status has been observed yet."""

    kind: Literal["unknown"] = "unknown"


class RenderInProgress(_StatusBase):
    """Cloud render is running."""

    kind: Literal["in_progress"] = "in_progress"
    # Upper bound left open: the server may report 1.0 before the URL is ready
    progress: float = Field(ge=0, description="Partial progress between 0 and 1")


class RenderComplete(_StatusBase):
    """Render finished; ``url`` is the public video URL."""

    kind: Literal["complete"] = "complete"
    url: RenderUrl

    @property
    def is_terminal(self) -> bool:
        return True


class RenderError(_StatusBase):
    """Render failed or the project is gone."""

    kind: Literal["error"] = "error"
    message: str

    @property
    def is_terminal(self) -> bool:
        return True


VideoStatus = Annotated[
    Union[Unknown, RenderInProgress, RenderComplete, RenderError],
    Field(discriminator="kind"),
]
