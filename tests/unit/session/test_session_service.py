"""Tests for session issuing, lazy validation and revocation."""

from datetime import timedelta

import pytest

from justadrop.core.modules.session.models import AuthToken, SubjectKind
from justadrop.errors import UnauthorizedError
from justadrop.utils import now


@pytest.fixture
async def user(core):
    return await core.services.user.create_user("volunteer@example.com", email_verified=True)


class TestCreateSession:
    async def test_tokens_are_unique_and_long(self, core, user):
        first = await core.services.session.create_session(SubjectKind.USER, user.id)
        second = await core.services.session.create_session(SubjectKind.USER, user.id)
        assert first != second
        assert len(first) >= 32

    async def test_expiry_is_thirty_days(self, core, database, user):
        await core.services.session.create_session(SubjectKind.USER, user.id)
        doc = database.get_collection("sessions").docs[0]
        assert doc["expires_at"] - doc["created_at"] == timedelta(days=30)


class TestAuthenticate:
    async def test_live_session_returns_user(self, core, user):
        token = await core.services.session.create_session(SubjectKind.USER, user.id)
        authenticated = await core.services.session.get_authenticated_user(token)
        assert authenticated.id == user.id

    async def test_unknown_token_rejected(self, core):
        with pytest.raises(UnauthorizedError, match="Invalid or expired session"):
            await core.services.session.get_authenticated_user(AuthToken("missing"))

    async def test_expired_session_rejected_and_deleted(self, core, database, user):
        token = await core.services.session.create_session(SubjectKind.USER, user.id)
        sessions = database.get_collection("sessions")
        sessions.docs[0]["expires_at"] = now() - timedelta(seconds=1)

        with pytest.raises(UnauthorizedError):
            await core.services.session.get_authenticated_user(token)
        assert sessions.docs == []

    async def test_session_of_other_kind_rejected(self, core, user):
        token = await core.services.session.create_session(SubjectKind.USER, user.id)
        with pytest.raises(UnauthorizedError):
            await core.services.session.get_authenticated_moderator(token)
        # The user session is untouched
        assert (await core.services.session.get_authenticated_user(token)).id == user.id

    async def test_banned_user_session_revoked(self, core, database, user):
        token = await core.services.session.create_session(SubjectKind.USER, user.id)
        # Flip the flag directly so only lazy validation can catch it
        database.get_collection("users").docs[0]["is_banned"] = True

        with pytest.raises(UnauthorizedError):
            await core.services.session.get_authenticated_user(token)
        assert database.get_collection("sessions").docs == []

    async def test_access_touches_last_accessed_at(self, core, database, user):
        token = await core.services.session.create_session(SubjectKind.USER, user.id)
        doc = database.get_collection("sessions").docs[0]
        doc["last_accessed_at"] = now() - timedelta(days=1)

        await core.services.session.get_authenticated_user(token)
        assert now() - database.get_collection("sessions").docs[0]["last_accessed_at"] < timedelta(minutes=1)


class TestRevocation:
    async def test_delete_session_is_idempotent(self, core, user):
        token = await core.services.session.create_session(SubjectKind.USER, user.id)
        await core.services.session.delete_session(token)
        await core.services.session.delete_session(token)
        with pytest.raises(UnauthorizedError):
            await core.services.session.get_authenticated_user(token)

    async def test_delete_session_respects_kind(self, core, user):
        token = await core.services.session.create_session(SubjectKind.USER, user.id)
        await core.services.session.delete_session(token, SubjectKind.MODERATOR)
        assert (await core.services.session.get_authenticated_user(token)).id == user.id

    async def test_ban_revokes_every_user_session(self, core, database, user):
        for _ in range(3):
            await core.services.session.create_session(SubjectKind.USER, user.id)

        await core.services.user.ban_user(user.id)
        assert database.get_collection("sessions").docs == []

    async def test_delete_user_revokes_moderator_sessions_too(self, core, database):
        account = await core.services.moderator.seed_moderator("mod@example.com")
        await core.services.session.create_session(SubjectKind.USER, account.user.id)
        await core.services.session.create_session(SubjectKind.MODERATOR, account.moderator.id)

        await core.services.user.delete_user(account.user.id)
        assert database.get_collection("sessions").docs == []

    async def test_bulk_delete_counts_only_subject(self, core, user):
        other = await core.services.user.create_user("other@example.com")
        await core.services.session.create_session(SubjectKind.USER, user.id)
        await core.services.session.create_session(SubjectKind.USER, user.id)
        other_token = await core.services.session.create_session(SubjectKind.USER, other.id)

        assert await core.services.session.delete_user_sessions(user.id) == 2
        assert (await core.services.session.get_authenticated_user(other_token)).id == other.id
