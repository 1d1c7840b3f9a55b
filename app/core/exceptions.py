"""Error taxonomy for the image pipeline and feed."""

from __future__ import annotations

from typing import Any, Dict, Optional


class PipelineError(Exception):
    """Base class for every error raised by the pipeline services."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(message)


class InvalidInput(PipelineError):
    """Malformed request from a caller (empty image set, foreign image, bad VIN)."""


class InvalidState(PipelineError):
    """Illegal job transition."""


class NotFound(PipelineError):
    """Requested row does not exist in the store."""


class TransformationFailure(PipelineError):
    """A single image could not be transformed. Non-fatal to the job."""


class TransformationUnreachable(PipelineError):
    """The transformation dependency itself is unavailable. Fatal to the job."""


class AuthenticationFailure(PipelineError):
    """Feed access denied."""
