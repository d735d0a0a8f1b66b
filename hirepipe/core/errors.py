from __future__ import annotations

from fastapi import status


class PipelineError(Exception):
    """Base for every failure a phase operation reports to its caller.

    `reason` is the short machine-readable code rendered as `error` in JSON
    responses; `detail` is the human message.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_reason: str = "internal_error"

    def __init__(self, detail: str, *, reason: str | None = None, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.reason = reason or self.default_reason
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, str]:
        return {"error": self.reason, "detail": self.detail}


class ValidationError(PipelineError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_reason = "invalid_input"


class NotFoundError(PipelineError):
    status_code = status.HTTP_404_NOT_FOUND
    default_reason = "not_found"


class ConflictError(PipelineError):
    status_code = status.HTTP_409_CONFLICT
    default_reason = "conflict"


class UpstreamError(PipelineError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_reason = "upstream_error"


class FatalError(PipelineError):
    # Raised inside job handlers for state that retrying cannot fix.
    default_reason = "fatal"


class UnauthorizedError(PipelineError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_reason = "unauthorized"
