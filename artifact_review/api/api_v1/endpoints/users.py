from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from artifact_review.api.api_v1.deps import get_identity
from artifact_review.core.security import Identity
from artifact_review.db.session import get_session
from artifact_review.schemas.user import UserOut
from artifact_review.services.serializers import user_out
from artifact_review.services.user_service import UserService

router = APIRouter(prefix="/users")


@router.get("/me", response_model=UserOut | None)
async def get_current_user(identity: Identity | None = Depends(get_identity), session: AsyncSession = Depends(get_session)):
    svc = UserService(session)
    row = await svc.get_current_user(identity)
    return user_out(row) if row else None


@router.get("/by-email/{email}", response_model=UserOut | None)
async def get_user_by_email(email: str, session: AsyncSession = Depends(get_session)):
    svc = UserService(session)
    row = await svc.get_by_email(email)
    return user_out(row) if row else None


@router.get("/by-username/{username}", response_model=UserOut | None)
async def get_user_by_username(username: str, session: AsyncSession = Depends(get_session)):
    svc = UserService(session)
    row = await svc.get_by_username(username)
    return user_out(row) if row else None
