from fastapi import Response

from justadrop.config import Config
from justadrop.core.modules.session.models import AuthToken
from justadrop.web.deps import SESSION_COOKIE


def set_session_cookie(response: Response, token: AuthToken, config: Config) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=config.cookie_secure,
        max_age=config.session_ttl_days * 24 * 60 * 60,  # match session TTL
        path="/",
    )


def clear_session_cookie(response: Response, config: Config) -> None:
    response.delete_cookie(SESSION_COOKIE, path="/", secure=config.cookie_secure, httponly=True, samesite="lax")
