from typing import Any

from pydantic import BaseModel, Field


class ErrorPayload(BaseModel):
    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)
    hint: str | None = None


class OkResponse(BaseModel):
    ok: bool = True


class ResultResponse(BaseModel):
    success: bool
    error: str | None = None
