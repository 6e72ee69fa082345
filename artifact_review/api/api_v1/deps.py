from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from artifact_review.core.errors import not_authenticated
from artifact_review.core.security import Identity
from artifact_review.db.session import get_session
from artifact_review.services.auth_service import AuthService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> Identity | None:
    if credentials is None:
        return None
    svc = AuthService(session)
    return await svc.resolve(credentials.credentials)


async def require_identity(identity: Identity | None = Depends(get_identity)) -> Identity:
    if identity is None:
        raise not_authenticated()
    return identity
