"""Tests for OTP issuing and single-use verification."""

from datetime import timedelta

import pytest

from justadrop.core.modules.otp.service import INVALID_OTP_MESSAGE, generate_otp_code
from justadrop.core.modules.otp.validators import validate_otp_code
from justadrop.errors import ValidationError
from justadrop.utils import now

EMAIL = "volunteer@example.com"


class TestGenerateOtpCode:
    def test_code_has_requested_length_and_is_numeric(self):
        for _ in range(50):
            code = generate_otp_code(6)
            assert len(code) == 6
            assert code.isdigit()


class TestValidateOtpCode:
    def test_wrong_length_rejected(self):
        with pytest.raises(ValidationError, match="Valid 6-digit OTP code is required"):
            validate_otp_code("12345")

    def test_missing_code_rejected(self):
        with pytest.raises(ValidationError, match="Valid 6-digit OTP code is required"):
            validate_otp_code(None)

    def test_whitespace_is_not_stripped(self):
        with pytest.raises(ValidationError):
            validate_otp_code(" 123456")


class TestIssueAndVerify:
    async def test_issue_stores_code_and_queues_email(self, core, database, fixed_otp):
        await core.services.otp.issue_otp(EMAIL)

        codes = database.get_collection("otp_codes").docs
        assert len(codes) == 1
        assert codes[0]["code"] == fixed_otp
        assert codes[0]["expires_at"] - codes[0]["created_at"] == timedelta(minutes=10)

        messages = database.get_collection("email_outbox").docs
        assert len(messages) == 1
        assert messages[0]["to"] == EMAIL
        assert fixed_otp in messages[0]["html"]

    async def test_issue_returns_nothing(self, core, fixed_otp):
        assert await core.services.otp.issue_otp(EMAIL) is None

    async def test_correct_code_verifies_once(self, core, fixed_otp):
        await core.services.otp.issue_otp(EMAIL)

        assert await core.services.otp.verify_otp(EMAIL, fixed_otp) is True
        assert await core.services.otp.verify_otp(EMAIL, fixed_otp) is False

    async def test_wrong_code_does_not_consume(self, core, fixed_otp):
        await core.services.otp.issue_otp(EMAIL)

        assert await core.services.otp.verify_otp(EMAIL, "000000") is False
        assert await core.services.otp.verify_otp(EMAIL, fixed_otp) is True

    async def test_new_code_supersedes_previous(self, core):
        otp = core.services.otp
        otp.code_generator = lambda length: "111111"
        await otp.issue_otp(EMAIL)
        otp.code_generator = lambda length: "222222"
        await otp.issue_otp(EMAIL)

        assert await otp.verify_otp(EMAIL, "111111") is False
        assert await otp.verify_otp(EMAIL, "222222") is True

    async def test_expired_code_rejected(self, core, database, fixed_otp):
        await core.services.otp.issue_otp(EMAIL)
        database.get_collection("otp_codes").docs[0]["expires_at"] = now() - timedelta(seconds=1)

        assert await core.services.otp.verify_otp(EMAIL, fixed_otp) is False

    async def test_codes_are_scoped_to_identifier(self, core, fixed_otp):
        await core.services.otp.issue_otp(EMAIL)

        assert await core.services.otp.verify_otp("other@example.com", fixed_otp) is False
        assert await core.services.otp.verify_otp(EMAIL, fixed_otp) is True

    async def test_consume_raises_same_message_for_every_failure(self, core, database, fixed_otp):
        with pytest.raises(ValidationError, match=INVALID_OTP_MESSAGE):
            await core.services.otp.consume_otp(EMAIL, fixed_otp)  # nothing issued

        await core.services.otp.issue_otp(EMAIL)
        with pytest.raises(ValidationError, match=INVALID_OTP_MESSAGE):
            await core.services.otp.consume_otp(EMAIL, "999999")  # wrong code

        database.get_collection("otp_codes").docs[0]["expires_at"] = now() - timedelta(minutes=1)
        with pytest.raises(ValidationError, match=INVALID_OTP_MESSAGE):
            await core.services.otp.consume_otp(EMAIL, fixed_otp)  # expired

    async def test_email_failure_keeps_code_valid(self, core, fixed_otp, monkeypatch):
        async def broken(*args, **kwargs):
            raise RuntimeError("outbox unavailable")

        monkeypatch.setattr(core.services.email, "send_otp_email", broken)
        await core.services.otp.issue_otp(EMAIL)

        assert await core.services.otp.verify_otp(EMAIL, fixed_otp) is True
