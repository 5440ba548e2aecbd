"""
Protocol definitions for the realtime provider.

This module defines the interface (Python Protocol) the session orchestrator
uses to reach the externally hosted call and chat services. It allows:
- Swapping implementations (e.g., Stream → another provider)
- Testing without real API credentials
- Clear contracts between components

Both resources of a session are keyed by the session's call id.

Usage:
    from sessionhub.services.protocols import RealtimeGatewayProtocol

    async def provision(gateway: RealtimeGatewayProtocol, session):
        await gateway.create_or_get_call(session.call_id, owner, {...})
        await gateway.create_channel(session.call_id, name, owner, [owner])
"""

from typing import Any, Dict, List, Optional, Protocol


class RealtimeGatewayProtocol(Protocol):
    """
    Interface for the realtime call + chat provider.

    Implementations raise UpstreamProviderError when the provider is
    unreachable or rejects a request.

    Implementations:
        - StreamGateway: Stream video + chat REST APIs
        - FakeGateway (tests): in-memory, with injectable failures
    """

    async def create_or_get_call(
        self,
        call_id: str,
        owner_provider_id: str,
        custom: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Create the call, or return it unchanged if it already exists.

        Args:
            call_id: Session call id
            owner_provider_id: Provider id recorded as the call creator
            custom: Metadata stored on the call (problem, difficulty, sessionId)
        """
        ...

    async def get_call(self, call_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a call, or None if it does not exist."""
        ...

    async def delete_call(self, call_id: str, hard: bool = True) -> None:
        """Delete a call. Deleting a missing call is not an error."""
        ...

    async def create_channel(
        self,
        call_id: str,
        name: str,
        owner_provider_id: str,
        members: List[str],
    ) -> Dict[str, Any]:
        """Create the chat channel for a session (idempotent on call_id)."""
        ...

    async def add_channel_member(self, call_id: str, provider_id: str) -> None:
        """Add a provider user to the session's chat channel."""
        ...

    async def delete_channel(self, call_id: str) -> None:
        """Delete the chat channel. Deleting a missing channel is not an error."""
        ...

    async def upsert_user(self, provider_id: str, name: str, image: str = "") -> None:
        """Create or update a user in the provider namespace."""
        ...

    async def delete_user(self, provider_id: str) -> None:
        """Remove a user from the provider namespace."""
        ...

    def create_user_token(self, provider_id: str) -> str:
        """Mint a client token for a provider user."""
        ...


class DriftRecorderProtocol(Protocol):
    """Sink for sessions left in a partial state."""

    async def record(
        self,
        session_id: str,
        call_id: str,
        operation: str,
        resources: List[str],
    ) -> None:
        ...
