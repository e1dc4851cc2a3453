import structlog

from justadrop.core.core import Service
from justadrop.core.modules.auth.models import UserLogin
from justadrop.core.modules.otp.validators import validate_otp_code
from justadrop.core.modules.session.models import AuthToken, SubjectKind
from justadrop.core.modules.user.validators import validate_email
from justadrop.errors import ForbiddenError

logger = structlog.get_logger(__name__)


class AuthService(Service):
    """End-user authentication: email OTP sign-up/sign-in and session lifecycle."""

    async def send_otp(self, email: str) -> None:
        await self.core.services.otp.issue_otp(validate_email(email))

    async def verify_otp_and_login(self, email: str, code: str) -> UserLogin:
        """Consume the OTP, create or verify the user, and open a session.

        The code is consumed before the account is checked, so a banned user
        burns the code and still gets ForbiddenError.
        """
        email = validate_email(email)
        validate_otp_code(code, self.core.config.otp_code_length)
        await self.core.services.otp.consume_otp(email, code)

        users = self.core.services.user
        user = await users.find_by_email(email)
        is_new_user = user is None
        if user is None:
            user = await users.create_user(email, email_verified=True)
            await self.core.services.email.send_welcome_email(email)
        elif not user.email_verified:
            user = await users.mark_email_verified(user.id)

        if not user.in_good_standing:
            raise ForbiddenError("Account is banned or deleted")

        token = await self.core.services.session.create_session(SubjectKind.USER, user.id)
        logger.info("user_logged_in", user_id=user.id, is_new_user=is_new_user)
        return UserLogin(token=token, user=user, is_new_user=is_new_user)

    async def logout(self, auth_token: AuthToken) -> None:
        await self.core.services.session.delete_session(auth_token, SubjectKind.USER)
