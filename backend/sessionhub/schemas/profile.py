from typing import Optional
from pydantic import BaseModel, Field


class SyncProfileRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    profile_image: Optional[str] = Field("", max_length=500)


class ProfileResponse(BaseModel):
    id: str
    provider_id: str
    name: str
    email: str
    profile_image: str
    created_at: Optional[str]
    updated_at: Optional[str]


class ChatTokenResponse(BaseModel):
    token: str
    user_id: str
    user_name: str
    user_image: str
