import structlog

from justadrop.core.core import Service
from justadrop.core.modules.moderator.models import ModeratorAccount
from justadrop.core.modules.moderator_auth.models import ModeratorLogin
from justadrop.core.modules.otp.validators import validate_otp_code
from justadrop.core.modules.session.models import AuthToken, SubjectKind
from justadrop.core.modules.user.validators import validate_email
from justadrop.errors import ForbiddenError, NotFoundError, UnauthorizedError

logger = structlog.get_logger(__name__)


class ModeratorAuthService(Service):
    """Moderator OTP login.

    Eligibility is checked before a code is generated (no OTP is ever sent to a
    non-moderator) and again after the code is consumed, since the account can
    change in between.
    """

    async def verify_moderator_by_email(self, email: str) -> ModeratorAccount:
        """Resolve an email to an eligible moderator or raise."""
        user = await self.core.services.user.find_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        if not user.email_verified:
            raise UnauthorizedError("Unverified email")
        if not user.in_good_standing:
            raise ForbiddenError("Account is banned or deleted")

        account = await self.core.services.moderator.get_account_by_user_id(user.id)
        if account is None or not account.moderator.is_active:
            raise UnauthorizedError("Unknown moderator")
        return account

    async def send_otp(self, email: str) -> None:
        email = validate_email(email)
        await self.verify_moderator_by_email(email)
        await self.core.services.otp.issue_otp(email)

    async def verify_otp_and_login(self, email: str, code: str) -> ModeratorLogin:
        email = validate_email(email)
        validate_otp_code(code, self.core.config.otp_code_length)
        await self.core.services.otp.consume_otp(email, code)

        account = await self.verify_moderator_by_email(email)
        token = await self.core.services.session.create_session(SubjectKind.MODERATOR, account.moderator.id)
        logger.info("moderator_logged_in", moderator_id=account.moderator.id)
        return ModeratorLogin(token=token, account=account)

    async def logout(self, auth_token: AuthToken) -> None:
        await self.core.services.session.delete_session(auth_token, SubjectKind.MODERATOR)

    async def get_current_moderator(self, auth_token: AuthToken) -> ModeratorAccount | None:
        try:
            return await self.core.services.session.get_authenticated_moderator(auth_token)
        except UnauthorizedError:
            return None
