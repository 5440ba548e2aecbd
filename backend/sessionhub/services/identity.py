"""Caller identity passed from the access guard to the orchestrator."""
from dataclasses import dataclass

from sessionhub.models.profile import Profile


@dataclass(frozen=True)
class CallerIdentity:
    """Verified caller: local profile id plus provider (Stream) user id."""
    local_id: str
    provider_id: str

    @classmethod
    def from_profile(cls, profile: Profile) -> "CallerIdentity":
        return cls(local_id=profile.id, provider_id=profile.provider_id)
