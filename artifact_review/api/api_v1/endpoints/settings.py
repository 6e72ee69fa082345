from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from artifact_review.api.api_v1.deps import get_identity
from artifact_review.core.security import Identity
from artifact_review.db.session import get_session
from artifact_review.schemas.common import ResultResponse
from artifact_review.schemas.settings import ChangePasswordRequest, GracePeriodOut, ReauthMagicLinkRequest
from artifact_review.services.settings_service import SettingsService

router = APIRouter(prefix="/settings")


@router.get("/grace-period", response_model=GracePeriodOut)
async def get_grace_period_status(identity: Identity | None = Depends(get_identity), session: AsyncSession = Depends(get_session)):
    svc = SettingsService(session)
    status = await svc.get_grace_period_status(identity)
    return GracePeriodOut(
        is_within_grace_period=status.is_within_grace_period,
        expires_at=status.expires_at,
        session_created_at=status.session_created_at,
    )


@router.post("/password", response_model=ResultResponse)
async def change_password(
    request: ChangePasswordRequest,
    identity: Identity | None = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    svc = SettingsService(session)
    return ResultResponse(**await svc.change_password(identity, request))


@router.post("/reauth-magic-link", response_model=ResultResponse)
async def send_reauth_magic_link(
    request: ReauthMagicLinkRequest,
    identity: Identity | None = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    svc = SettingsService(session)
    return ResultResponse(**await svc.send_reauth_magic_link(identity, request.redirect_to))
