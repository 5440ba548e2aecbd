"""Business Logic Services.

This package contains the service modules that implement the interview
session backend.

Service Categories:
- Session: Lifecycle orchestration, store, drift ledger, reconciler
- Realtime: Stream video call + chat channel gateway
- Access: Bearer token verification and caller resolution
- Profiles: Local profile sync with the provider user namespace
"""
