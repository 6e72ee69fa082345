"""Re-authentication grace period.

For a short window after a session is opened the owner may change their
password without typing the current one. Nothing about the window is stored:
it is recomputed on each call from the session's creation time, so a session
moves from fresh to stale exactly once and only a new sign-in (a new session)
opens a new window.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from artifact_review.core.security import Identity
from artifact_review.models import AuthSession, as_utc, now_utc

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class GracePeriodStatus:
    is_within_grace_period: bool
    expires_at: datetime | None = None
    session_created_at: datetime | None = None

    @classmethod
    def outside(cls) -> GracePeriodStatus:
        return cls(is_within_grace_period=False)


class GracePeriodGate:
    def __init__(self, session: AsyncSession, grace_period: timedelta, clock: Clock = now_utc):
        self.session = session
        self.grace_period = grace_period
        self.clock = clock

    async def calculate_for_session(self, session_id: str) -> GracePeriodStatus:
        auth_session = await self.session.get(AuthSession, session_id)
        if not auth_session:
            # Sessions expire and get cleaned up; a missing one is simply stale.
            logger.warning("Grace period requested for unknown session %s", session_id)
            return GracePeriodStatus.outside()

        created_at = as_utc(auth_session.created_at)
        expires_at = created_at + self.grace_period
        within = self.clock() < expires_at

        logger.debug(
            "Grace period for session %s: created=%s expires=%s within=%s",
            session_id,
            created_at.isoformat(),
            expires_at.isoformat(),
            within,
        )
        return GracePeriodStatus(
            is_within_grace_period=within,
            expires_at=expires_at if within else None,
            session_created_at=created_at,
        )

    async def status_for(self, identity: Identity | None) -> GracePeriodStatus:
        if identity is None or not identity.session_id:
            return GracePeriodStatus.outside()
        return await self.calculate_for_session(identity.session_id)
