from pydantic import BaseModel

from justadrop.core.modules.moderator.models import ModeratorAccount
from justadrop.core.modules.session.models import AuthToken


class ModeratorLogin(BaseModel):
    """Outcome of a successful moderator OTP login."""

    token: AuthToken
    account: ModeratorAccount
