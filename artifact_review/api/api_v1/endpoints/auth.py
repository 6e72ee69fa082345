from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from artifact_review.api.api_v1.deps import require_identity
from artifact_review.core.security import Identity
from artifact_review.db.session import get_session
from artifact_review.schemas.auth import MagicLinkRequest, MagicLinkVerifyRequest, SessionOut, SignInRequest, SignUpRequest
from artifact_review.schemas.common import OkResponse
from artifact_review.services.auth_service import AuthService, IssuedSession

router = APIRouter(prefix="/auth")


def _session_out(issued: IssuedSession) -> SessionOut:
    return SessionOut(
        token=issued.token,
        user_id=issued.session.user_id,
        session_id=issued.session.session_id,
        expires_at=issued.session.expires_at,
        redirect_to=issued.redirect_to,
    )


@router.post("/sign-up", response_model=SessionOut)
async def sign_up(request: SignUpRequest, session: AsyncSession = Depends(get_session)):
    svc = AuthService(session)
    return _session_out(await svc.sign_up(request))


@router.post("/sign-in", response_model=SessionOut)
async def sign_in(request: SignInRequest, session: AsyncSession = Depends(get_session)):
    svc = AuthService(session)
    return _session_out(await svc.sign_in(request))


@router.post("/anonymous", response_model=SessionOut)
async def sign_in_anonymous(session: AsyncSession = Depends(get_session)):
    svc = AuthService(session)
    return _session_out(await svc.sign_in_anonymous())


@router.post("/magic-link", response_model=OkResponse)
async def request_magic_link(request: MagicLinkRequest, session: AsyncSession = Depends(get_session)):
    svc = AuthService(session)
    await svc.request_magic_link(request.email, request.redirect_to)
    return OkResponse(ok=True)


@router.post("/magic-link/verify", response_model=SessionOut)
async def verify_magic_link(request: MagicLinkVerifyRequest, session: AsyncSession = Depends(get_session)):
    svc = AuthService(session)
    return _session_out(await svc.redeem_magic_link(request.token))


@router.post("/sign-out", response_model=OkResponse)
async def sign_out(identity: Identity = Depends(require_identity), session: AsyncSession = Depends(get_session)):
    svc = AuthService(session)
    await svc.sign_out(identity)
    return OkResponse(ok=True)
