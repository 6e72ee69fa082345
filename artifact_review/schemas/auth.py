from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(max_length=256)
    name: str | None = Field(default=None, max_length=200)
    username: str | None = Field(default=None, min_length=1, max_length=100)


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(max_length=256)


class MagicLinkRequest(BaseModel):
    email: EmailStr
    redirect_to: str | None = Field(default=None, max_length=2048)


class MagicLinkVerifyRequest(BaseModel):
    token: str = Field(min_length=1, max_length=256)


class SessionOut(BaseModel):
    token: str
    user_id: str
    session_id: str
    expires_at: datetime
    redirect_to: str | None = None
