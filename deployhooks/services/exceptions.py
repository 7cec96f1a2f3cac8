"""Deployment tracking exception hierarchy."""

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "InvalidInput"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    NOT_CONFIGURED = "NotConfigured"
    NOT_FOUND = "NotFound"
    MALFORMED_UPSTREAM = "MalformedUpstream"
    BUILD_IN_PROGRESS = "BuildInProgress"


class ApiErrorKind(str, Enum):
    TRANSPORT = "TRANSPORT"
    NOT_FOUND = "NOT_FOUND"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"


class DeployHooksError(Exception):
    """Base exception for all deployment tracking errors."""


class TrackerError(DeployHooksError):
    """A status tracker operation was refused or could not be completed."""

    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.value}: {message}")


class VercelApiError(DeployHooksError):
    """A call to the Vercel API or deploy hook failed."""

    def __init__(self, kind: ApiErrorKind, detail: str, status_code: int | None = None, timeout: bool = False):
        self.kind = kind
        self.detail = detail
        self.status_code = status_code
        self.timeout = timeout
        super().__init__(f"[Vercel] {kind.value}: {detail}")
