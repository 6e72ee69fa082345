from fastapi import HTTPException

from artifact_review.schemas.common import ErrorPayload


def api_error(status_code: int, code: str, message: str, detail: dict | None = None, hint: str | None = None) -> HTTPException:
    payload = ErrorPayload(code=code, message=message, detail=detail or {}, hint=hint)
    return HTTPException(status_code=status_code, detail=payload.model_dump())


def not_authenticated() -> HTTPException:
    return api_error(401, "not_authenticated", "Not authenticated")


def not_authorized(detail: dict | None = None) -> HTTPException:
    return api_error(403, "not_authorized", "Not authorized", detail)
