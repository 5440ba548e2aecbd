"""
Session Service Exceptions

Custom exceptions for session lifecycle errors.

Every error has a stable `kind` (its class name) and a human-readable
message. These two are all an HTTP response may expose; provider error
bodies stay in the logs.
"""
from typing import List, Optional


class SessionServiceError(Exception):
    """Base exception for session service errors"""

    def __init__(self, message: str, session_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.session_id = session_id

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_detail(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(SessionServiceError):
    """Raised when caller input is missing or empty (nothing was written)"""
    pass


class AuthError(SessionServiceError):
    """Raised when the caller's identity cannot be verified"""
    pass


class ForbiddenError(SessionServiceError):
    """Raised when the caller's role does not allow the operation"""
    pass


class NotFoundError(SessionServiceError):
    """Raised when a session (or the caller's profile) does not exist"""
    pass


class SessionFullError(SessionServiceError):
    """Raised when a session already has its participant"""
    pass


class AlreadyEndedError(SessionServiceError):
    """Raised when a session is already completed"""
    pass


class UpstreamProviderError(SessionServiceError):
    """Raised when the realtime provider is unreachable or rejects a request.

    `status_code` and `operation` are kept for logs and metrics only.
    """

    def __init__(
        self,
        message: str,
        operation: str = "",
        status_code: Optional[int] = None,
        session_id: Optional[str] = None,
    ):
        super().__init__(message, session_id=session_id)
        self.operation = operation
        self.status_code = status_code


class PartialStateError(SessionServiceError):
    """Base for failures after the store committed.

    The session row is already written; `resources` names the realtime
    resources that disagree with it.
    """

    def __init__(self, message: str, session, resources: List[str], operation: str):
        super().__init__(message, session_id=session.id)
        self.session = session
        self.resources = list(resources)
        self.operation = operation


class PartialProvisioningError(PartialStateError):
    """Raised when a session is active but some of its realtime resources are missing"""
    pass


class PartialTeardownError(PartialStateError):
    """Raised when a session is completed but some realtime resources were not deleted"""
    pass
