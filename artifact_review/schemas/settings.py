from datetime import datetime

from pydantic import BaseModel, Field


class GracePeriodOut(BaseModel):
    is_within_grace_period: bool
    expires_at: datetime | None = None
    session_created_at: datetime | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str | None = Field(default=None, max_length=256)
    new_password: str = Field(max_length=256)


class ReauthMagicLinkRequest(BaseModel):
    redirect_to: str | None = Field(default=None, max_length=2048)
