import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from artifact_review.core.security import Identity
from artifact_review.models import User
from artifact_review.services.auth_service import normalize_email

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_current_user(self, identity: Identity | None) -> User | None:
        if identity is None:
            return None
        user = await self.session.get(User, identity.user_id)
        if not user:
            logger.warning("Session %s points at missing user %s", identity.session_id, identity.user_id)
        return user

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalars().first()

    async def get_by_username(self, username: str) -> User | None:
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalars().first()
