import re
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from artifact_review.core.security import Identity, UserId, verify_password
from artifact_review.models import AuthSession, MagicLinkToken, User
from artifact_review.schemas.settings import ChangePasswordRequest
from artifact_review.services.auth_service import AuthService
from artifact_review.services.grace_period import GracePeriodGate
from artifact_review.services.mailer import LogMailer
from artifact_review.services.settings_service import SettingsService

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
INSIDE = T0 + timedelta(seconds=2)
OUTSIDE = T0 + timedelta(minutes=20)


async def _signed_in(session, make_user, email: str | None = "user@example.com", password: str | None = "oldpass123") -> Identity:
    identity = await make_user(session, email=email, password=password)
    row = AuthSession(
        user_id=identity.user_id,
        token_hash=f"hash-{identity.user_id}",
        created_at=T0,
        expires_at=T0 + timedelta(days=30),
    )
    session.add(row)
    await session.commit()
    return Identity(user_id=identity.user_id, session_id=row.session_id)


def _service(session, now: datetime, mailer: LogMailer | None = None) -> SettingsService:
    gate = GracePeriodGate(session, timedelta(minutes=15), clock=lambda: now)
    auth = AuthService(session, mailer=mailer or LogMailer(), clock=lambda: now)
    return SettingsService(session, gate=gate, auth=auth)


def test_change_password_requires_identity(run_db):
    async def scenario(session):
        return await _service(session, INSIDE).change_password(None, ChangePasswordRequest(new_password="newpass123"))

    assert run_db(scenario) == {"success": False, "error": "Not authenticated"}


def test_password_rules_apply_inside_and_outside_the_window(run_db, make_user):
    async def scenario(session):
        identity = await _signed_in(session, make_user)
        results = []
        for now in (INSIDE, OUTSIDE):
            svc = _service(session, now)
            for candidate in ("short1", "longenough", "12345678"):
                request = ChangePasswordRequest(current_password="oldpass123", new_password=candidate)
                results.append((await svc.change_password(identity, request))["error"])
        return results

    expected = [
        "Password must be at least 8 characters",
        "Password must contain a number",
        "Password must contain a letter",
    ]
    assert run_db(scenario) == expected * 2


def test_current_password_required_outside_the_window(run_db, make_user):
    async def scenario(session):
        identity = await _signed_in(session, make_user)
        return await _service(session, OUTSIDE).change_password(identity, ChangePasswordRequest(new_password="newpass123"))

    assert run_db(scenario) == {"success": False, "error": "Current password required"}


def test_change_inside_the_window_skips_current_password(run_db, make_user):
    async def scenario(session):
        identity = await _signed_in(session, make_user)
        request = ChangePasswordRequest(current_password="not-the-password1", new_password="newpass123")
        result = await _service(session, INSIDE).change_password(identity, request)
        user = await session.get(User, identity.user_id)
        return result, user.password_hash

    result, stored = run_db(scenario)
    assert result == {"success": True, "error": None}
    assert verify_password("newpass123", stored)


def test_change_outside_the_window_checks_current_password(run_db, make_user):
    async def scenario(session):
        identity = await _signed_in(session, make_user)
        svc = _service(session, OUTSIDE)
        wrong = await svc.change_password(identity, ChangePasswordRequest(current_password="wrongpass1", new_password="newpass123"))
        right = await svc.change_password(identity, ChangePasswordRequest(current_password="oldpass123", new_password="newpass123"))
        user = await session.get(User, identity.user_id)
        return wrong, right, user.password_hash

    wrong, right, stored = run_db(scenario)
    assert wrong == {"success": False, "error": "Current password is incorrect"}
    assert right == {"success": True, "error": None}
    assert verify_password("newpass123", stored)
    assert not verify_password("oldpass123", stored)


def test_change_for_unknown_user_reports_not_authenticated(run_db):
    async def scenario(session):
        ghost = Identity(user_id=UserId("ghost"), session_id=None)
        request = ChangePasswordRequest(current_password="oldpass123", new_password="newpass123")
        return await _service(session, INSIDE).change_password(ghost, request)

    assert run_db(scenario) == {"success": False, "error": "Not authenticated"}


def test_grace_period_status_follows_the_session(run_db, make_user):
    async def scenario(session):
        identity = await _signed_in(session, make_user)
        inside = await _service(session, INSIDE).get_grace_period_status(identity)
        outside = await _service(session, OUTSIDE).get_grace_period_status(identity)
        return inside, outside

    inside, outside = run_db(scenario)
    assert inside.is_within_grace_period is True
    assert inside.expires_at == T0 + timedelta(minutes=15)
    assert outside.is_within_grace_period is False
    assert outside.expires_at is None


def test_reauth_link_requires_an_email(run_db, make_user):
    async def scenario(session):
        anonymous = await _signed_in(session, make_user, email=None, password=None)
        mailer = LogMailer()
        svc = _service(session, OUTSIDE, mailer)
        return await svc.send_reauth_magic_link(None), await svc.send_reauth_magic_link(anonymous), len(mailer.sent)

    unauthenticated, no_email, sent = run_db(scenario)
    assert unauthenticated == {"success": False, "error": "Not authenticated"}
    assert no_email == {"success": False, "error": "User email not found"}
    assert sent == 0


def test_reauth_link_is_mailed_with_settings_redirect(run_db, make_user):
    async def scenario(session):
        identity = await _signed_in(session, make_user)
        mailer = LogMailer()
        result = await _service(session, OUTSIDE, mailer).send_reauth_magic_link(identity)
        token_row = (await session.execute(select(MagicLinkToken))).scalars().one()
        return result, list(mailer.sent), token_row

    result, sent, token_row = run_db(scenario)
    assert result == {"success": True, "error": None}
    assert [m.to for m in sent] == ["user@example.com"]
    token = re.search(r"token=([\w-]+)", sent[0].text).group(1)
    assert token
    assert token_row.redirect_to == "/settings"
    assert token_row.email == "user@example.com"
