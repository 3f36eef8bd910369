"""Error taxonomy raised by the SDK facade and creation pipeline."""

from typing import Optional


class VoiaSDKError(Exception):
    """Base class for all errors surfaced to the host application."""


class MissingClientSecret(VoiaSDKError):
    """Raised when the SDK is used before register() was called."""

    def __init__(self, message: str = "Client secret key not registered"):
        super().__init__(message)


class ApiCallFailed(VoiaSDKError):
    """Raised when a creation-pipeline network step fails.

    ``step`` names the failing stage: "create_project", "sign_url" or
    "upload". The underlying transport error, if any, is chained as
    ``__cause__``.
    """

    def __init__(self, step: str, message: Optional[str] = None):
        self.step = step
        super().__init__(message or f"API call failed at step {step!r}")
