"""Error kinds shared by the generation, persistence and builder-sync layers.

Every error maps onto the wire body ``{"error", "status", "details"}`` through
``FlowsmithError.to_body``. ``retryable`` tells callers whether repeating the
same request can succeed without any change on their side.
"""
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel


class ValidationIssue(BaseModel):
    stage: str  # structural | referential | semantic
    message: str
    path: Optional[str] = None


class FlowsmithError(Exception):
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict:
        return {"error": self.message, "status": self.status_code, "details": self.details}


class GraphValidationError(FlowsmithError):
    status_code = 422

    def __init__(self, issues: List[ValidationIssue], message: str = "Flow graph failed validation"):
        super().__init__(message, details=[issue.model_dump() for issue in issues])
        self.issues = issues


class UpstreamError(FlowsmithError):
    """Non-success answer from the generative backend or the builder."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None, body: Any = None):
        super().__init__(message, details=body)
        self.upstream_status = upstream_status
        self.body = body
        if upstream_status == 429:
            self.status_code = 429
        self.retryable = upstream_status is not None and (upstream_status == 429 or upstream_status >= 500)

    def to_body(self) -> dict:
        body = super().to_body()
        body["upstream_status"] = self.upstream_status
        body["retryable"] = self.retryable
        return body


class UpstreamConnectionError(UpstreamError):
    """No response at all (DNS, refused connection, reset)."""

    status_code = 503

    def __init__(self, message: str):
        super().__init__(message)
        self.status_code = 503
        self.retryable = True


class UpstreamTimeoutError(UpstreamError):
    status_code = 504

    def __init__(self, message: str):
        super().__init__(message)
        self.status_code = 504
        self.retryable = True


class MalformedResponseError(UpstreamError):
    """2xx answer whose body could not be decoded into the expected shape."""

    def __init__(self, message: str, body: Any = None):
        super().__init__(message, upstream_status=None, body=body)
        # The body stays on the exception for logs only; it may be anything the remote sent.
        self.details = None
        self.status_code = 502
        self.retryable = False


class NotFoundError(FlowsmithError):
    status_code = 404


class AuthorizationError(FlowsmithError):
    status_code = 403


class AuthenticationError(FlowsmithError):
    status_code = 401


class GenerationInProgressError(FlowsmithError):
    status_code = 409
    retryable = True


class RaceCondition(str, Enum):
    """Known, accepted races. Used to tag log records, never raised."""

    FOLDER_DOUBLE_PROVISION = "folder_double_provision"
    CONCURRENT_PATCH = "concurrent_patch"
