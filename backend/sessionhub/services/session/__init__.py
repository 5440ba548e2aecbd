"""
Session management module.

Provides the SessionOrchestrator (interview session lifecycle), the
SessionStore it persists through, the drift ledger and the reconciler.
"""
from .exceptions import (
    SessionServiceError,
    ValidationError,
    AuthError,
    ForbiddenError,
    NotFoundError,
    SessionFullError,
    AlreadyEndedError,
    UpstreamProviderError,
    PartialStateError,
    PartialProvisioningError,
    PartialTeardownError,
)
from .store import SessionStore, SessionFilter
from .orchestrator import SessionOrchestrator, SessionEnded, generate_call_id
from .drift import DriftLedger, DriftEntry
from .reconciler import SessionReconciler, ReconcileReport

__all__ = [
    "SessionOrchestrator",
    "SessionEnded",
    "generate_call_id",
    "SessionStore",
    "SessionFilter",
    "DriftLedger",
    "DriftEntry",
    "SessionReconciler",
    "ReconcileReport",
    "SessionServiceError",
    "ValidationError",
    "AuthError",
    "ForbiddenError",
    "NotFoundError",
    "SessionFullError",
    "AlreadyEndedError",
    "UpstreamProviderError",
    "PartialStateError",
    "PartialProvisioningError",
    "PartialTeardownError",
]
