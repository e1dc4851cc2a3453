from pydantic import BaseModel

from justadrop.core.modules.session.models import AuthToken
from justadrop.core.modules.user.models import User


class UserLogin(BaseModel):
    """Outcome of a successful end-user OTP login."""

    token: AuthToken
    user: User
    is_new_user: bool
