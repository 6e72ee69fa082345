from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from urllib.parse import urlencode

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from artifact_review.core.config import settings
from artifact_review.core.errors import api_error
from artifact_review.core.security import (
    Identity,
    UserId,
    hash_password,
    hash_token,
    new_bearer_token,
    password_problem,
    verify_password,
)
from artifact_review.models import AuthSession, MagicLinkToken, User, as_utc, now_utc
from artifact_review.schemas.auth import SignInRequest, SignUpRequest
from artifact_review.services import mailer as mailer_module
from artifact_review.services.grace_period import Clock
from artifact_review.services.mailer import Mailer, magic_link_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedSession:
    token: str
    session: AuthSession
    redirect_to: str | None = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _email_taken(email: str) -> HTTPException:
    return api_error(409, "email_taken", "An account with this email already exists", {"email": email})


def _username_taken(username: str) -> HTTPException:
    return api_error(409, "username_taken", "Username is already taken", {"username": username})


class AuthService:
    def __init__(self, session: AsyncSession, mailer: Mailer | None = None, clock: Clock = now_utc):
        self.session = session
        self.mailer = mailer or mailer_module.mailer
        self.clock = clock

    async def sign_up(self, request: SignUpRequest) -> IssuedSession:
        problem = password_problem(request.password)
        if problem:
            raise api_error(400, "weak_password", problem)

        email = normalize_email(request.email)
        if await self._user_by_email(email):
            raise _email_taken(email)
        if request.username and await self._user_by_username(request.username):
            raise _username_taken(request.username)

        user = User(
            email=email,
            name=request.name,
            username=request.username,
            is_anonymous=False,
            password_hash=hash_password(request.password),
        )
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError:
            # Lost a race with a concurrent sign-up for the same email or username.
            await self.session.rollback()
            if await self._user_by_email(email) is None and request.username:
                raise _username_taken(request.username) from None
            raise _email_taken(email) from None
        logger.info("Registered password account %s", user.user_id)
        return await self._open_session(user)

    async def sign_in(self, request: SignInRequest) -> IssuedSession:
        user = await self._user_by_email(normalize_email(request.email))
        if not user or not verify_password(request.password, user.password_hash):
            logger.warning("Password sign-in failed")
            raise api_error(401, "invalid_credentials", "Invalid email or password")
        return await self._open_session(user)

    async def sign_in_anonymous(self) -> IssuedSession:
        user = User(is_anonymous=True)
        self.session.add(user)
        await self.session.flush()
        logger.info("Created anonymous account %s", user.user_id)
        return await self._open_session(user)

    async def request_magic_link(self, email: str, redirect_to: str | None = None) -> None:
        email = normalize_email(email)
        token = new_bearer_token()
        now = self.clock()
        row = MagicLinkToken(
            email=email,
            token_hash=hash_token(token),
            redirect_to=redirect_to,
            created_at=now,
            expires_at=now + timedelta(seconds=settings.magic_link_ttl_seconds),
        )
        self.session.add(row)
        await self.session.commit()

        url = f"{settings.public_base_url.rstrip('/')}/auth/verify?{urlencode({'token': token})}"
        await self.mailer.send(magic_link_email(email, url, settings.magic_link_ttl_seconds // 60))
        logger.info("Magic link issued (token %s, redirect %s)", row.token_id, redirect_to)

    async def redeem_magic_link(self, token: str) -> IssuedSession:
        stmt = select(MagicLinkToken).where(MagicLinkToken.token_hash == hash_token(token))
        row = (await self.session.execute(stmt)).scalars().first()
        now = self.clock()
        if not row or row.consumed_at is not None or as_utc(row.expires_at) <= now:
            raise api_error(400, "invalid_magic_link", "Magic link is invalid or has expired")
        row.consumed_at = now

        user = await self._user_by_email(row.email)
        if not user:
            user = User(email=row.email, is_anonymous=False, email_verified_at=now)
            self.session.add(user)
            await self.session.flush()
            logger.info("Registered magic-link account %s", user.user_id)
        elif user.email_verified_at is None:
            user.email_verified_at = now

        return await self._open_session(user, redirect_to=row.redirect_to)

    async def sign_out(self, identity: Identity) -> None:
        if not identity.session_id:
            return
        row = await self.session.get(AuthSession, identity.session_id)
        if row and row.revoked_at is None:
            row.revoked_at = self.clock()
            await self.session.commit()
            logger.info("Signed out session %s", row.session_id)

    async def resolve(self, token: str) -> Identity | None:
        stmt = select(AuthSession).where(AuthSession.token_hash == hash_token(token))
        row = (await self.session.execute(stmt)).scalars().first()
        if not row or row.revoked_at is not None or as_utc(row.expires_at) <= self.clock():
            return None
        return Identity(user_id=UserId(row.user_id), session_id=row.session_id)

    async def _open_session(self, user: User, redirect_to: str | None = None) -> IssuedSession:
        token = new_bearer_token()
        now = self.clock()
        row = AuthSession(
            user_id=user.user_id,
            token_hash=hash_token(token),
            created_at=now,
            expires_at=now + timedelta(seconds=settings.session_ttl_seconds),
        )
        self.session.add(row)
        await self.session.commit()
        return IssuedSession(token=token, session=row, redirect_to=redirect_to)

    async def _user_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def _user_by_username(self, username: str) -> User | None:
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalars().first()
