from typing import Annotated, cast

from fastapi import Depends, Header, Request
from fastapi.security import APIKeyCookie, APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from justadrop.app import App
from justadrop.config import Config
from justadrop.core.modules.session.models import AuthToken
from justadrop.errors import UnauthorizedError

SESSION_COOKIE = "sessionToken"
SESSION_HEADER = "X-Session-Token"

# Security schemes
cookie_scheme = APIKeyCookie(name=SESSION_COOKIE, auto_error=False)
bearer_scheme = HTTPBearer(auto_error=False)
session_header_scheme = APIKeyHeader(name=SESSION_HEADER, auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_config(request: Request) -> Config:
    return cast(Config, request.app.state.config)


def extract_auth_token(
    token_cookie: str | None,
    credentials: HTTPAuthorizationCredentials | None,
    token_header: str | None,
) -> AuthToken | None:
    """Pick the session token from the request in fixed priority order.

    1. `sessionToken` cookie (browsers behind the first-party proxy)
    2. `Authorization: Bearer <token>` (cross-origin API clients)
    3. `X-Session-Token` header
    """
    if token_cookie:
        return AuthToken(token_cookie)
    if credentials and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return AuthToken(credentials.credentials)
    if token_header:
        return AuthToken(token_header)
    return None


async def get_optional_auth_token(
    token_cookie: Annotated[str | None, Depends(cookie_scheme)] = None,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
    token_header: Annotated[str | None, Depends(session_header_scheme)] = None,
) -> AuthToken | None:
    return extract_auth_token(token_cookie, credentials, token_header)


async def get_auth_token(
    auth_token: Annotated[AuthToken | None, Depends(get_optional_auth_token)],
) -> AuthToken:
    """Require a session token; whether it is valid is decided by the App method that uses it."""
    if auth_token is None:
        raise UnauthorizedError("Authentication required")
    return auth_token


async def get_x_auth_id(x_auth_id: Annotated[str | None, Header(alias="x-auth-id")] = None) -> str | None:
    return x_auth_id


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
ConfigDep = Annotated[Config, Depends(get_config)]
AuthTokenDep = Annotated[AuthToken, Depends(get_auth_token)]
OptionalAuthTokenDep = Annotated[AuthToken | None, Depends(get_optional_auth_token)]
XAuthIdDep = Annotated[str | None, Depends(get_x_auth_id)]
