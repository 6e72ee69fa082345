from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from artifact_review.core.config import settings
from artifact_review.core.security import Identity, hash_password, password_problem, verify_password
from artifact_review.models import User
from artifact_review.schemas.settings import ChangePasswordRequest
from artifact_review.services.auth_service import AuthService
from artifact_review.services.grace_period import GracePeriodGate, GracePeriodStatus

logger = logging.getLogger(__name__)

DEFAULT_REAUTH_REDIRECT = "/settings"


def _ok() -> dict:
    return {"success": True, "error": None}


def _failure(error: str) -> dict:
    return {"success": False, "error": error}


class SettingsService:
    """Account settings gated by the re-authentication grace period.

    Expected failures come back as ``{"success": False, "error": ...}`` so the
    settings page can show them inline.
    """

    def __init__(self, session: AsyncSession, gate: GracePeriodGate | None = None, auth: AuthService | None = None):
        self.session = session
        self.gate = gate or GracePeriodGate(session, settings.grace_period)
        self.auth = auth or AuthService(session)

    async def get_grace_period_status(self, identity: Identity | None) -> GracePeriodStatus:
        return await self.gate.status_for(identity)

    async def change_password(self, identity: Identity | None, request: ChangePasswordRequest) -> dict:
        if identity is None:
            logger.warning("Password change attempted without authentication")
            return _failure("Not authenticated")

        problem = password_problem(request.new_password)
        if problem:
            logger.warning("Password change for user %s rejected: %s", identity.user_id, problem)
            return _failure(problem)

        status = await self.gate.status_for(identity)
        if not status.is_within_grace_period and not request.current_password:
            logger.warning("Password change for user %s needs the current password", identity.user_id)
            return _failure("Current password required")

        user = await self.session.get(User, identity.user_id)
        if not user:
            return _failure("Not authenticated")

        # Inside the window the current password is not consulted at all.
        if not status.is_within_grace_period and not verify_password(request.current_password, user.password_hash):
            logger.warning("Password change for user %s: current password mismatch", identity.user_id)
            return _failure("Current password is incorrect")

        user.password_hash = hash_password(request.new_password)
        await self.session.commit()
        logger.info(
            "Password changed for user %s (within_grace_period=%s)",
            identity.user_id,
            status.is_within_grace_period,
        )
        return _ok()

    async def send_reauth_magic_link(self, identity: Identity | None, redirect_to: str | None = None) -> dict:
        if identity is None:
            return _failure("Not authenticated")

        user = await self.session.get(User, identity.user_id)
        if not user or not user.email:
            logger.warning("Re-auth magic link requested for user %s without an email", identity.user_id)
            return _failure("User email not found")

        await self.auth.request_magic_link(user.email, redirect_to or DEFAULT_REAUTH_REDIRECT)
        return _ok()
