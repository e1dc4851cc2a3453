from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from justadrop.core.modules.moderator.models import ModeratorView
from justadrop.web.cookies import clear_session_cookie, set_session_cookie
from justadrop.web.deps import AppDep, AuthTokenDep, ConfigDep, OptionalAuthTokenDep, XAuthIdDep
from justadrop.web.openapi import Envelope, ErrorResponse, MessageData, ok

router = APIRouter(tags=["moderator-auth"])


class ModeratorSendOtpRequest(BaseModel):
    email: str = Field(..., description="Email address of the moderator's user account")


class ModeratorVerifyOtpRequest(BaseModel):
    email: str = Field(..., description="Email address the code was sent to")
    code: str = Field(..., description="Sign-in code from the email")


class ModeratorLoginData(BaseModel):
    token: str = Field(..., description="Moderator session token")
    moderator: ModeratorView


class CurrentModeratorData(BaseModel):
    moderator: ModeratorView


@router.post(
    "/moderator-auth/otp/send",
    summary="Send moderator sign-in code",
    description="Email a sign-in code to an existing, verified, active moderator.",
    operation_id="sendModeratorOtp",
    responses={
        200: {"description": "Code issued"},
        400: {"model": ErrorResponse, "description": "Invalid email"},
        401: {"model": ErrorResponse, "description": "Unverified email or unknown moderator"},
        403: {"model": ErrorResponse, "description": "Account is banned or deleted"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def send_moderator_otp(request: ModeratorSendOtpRequest, app: AppDep) -> Envelope[MessageData]:
    await app.send_moderator_otp(request.email)
    return ok(MessageData(message="OTP sent successfully"))


@router.post(
    "/moderator-auth/otp/verify",
    summary="Verify moderator sign-in code",
    operation_id="verifyModeratorOtp",
    responses={
        200: {"description": "Signed in"},
        400: {"model": ErrorResponse, "description": "Invalid input or invalid/expired code"},
        401: {"model": ErrorResponse, "description": "No longer eligible"},
        403: {"model": ErrorResponse, "description": "Account is banned or deleted"},
    },
)
async def verify_moderator_otp(
    request: ModeratorVerifyOtpRequest, app: AppDep, config: ConfigDep, response: Response
) -> Envelope[ModeratorLoginData]:
    token, moderator = await app.verify_moderator_otp(request.email, request.code)
    set_session_cookie(response, token, config)
    x_auth_id = app.get_x_auth_id()
    if x_auth_id:
        response.headers["X-Auth-Id"] = x_auth_id
    return ok(ModeratorLoginData(token=token, moderator=moderator))


@router.get(
    "/moderator-auth/me",
    summary="Get current moderator",
    operation_id="getCurrentModerator",
    responses={
        200: {"description": "Current moderator"},
        401: {"model": ErrorResponse, "description": "Not authenticated or x-auth-id missing/invalid"},
    },
)
async def get_current_moderator(app: AppDep, auth_token: AuthTokenDep, x_auth_id: XAuthIdDep) -> Envelope[CurrentModeratorData]:
    return ok(CurrentModeratorData(moderator=await app.get_current_moderator(auth_token, x_auth_id)))


@router.post(
    "/moderator-auth/logout",
    summary="End moderator session",
    operation_id="moderatorLogout",
    responses={
        200: {"description": "Logged out"},
        401: {"model": ErrorResponse, "description": "x-auth-id missing/invalid"},
    },
)
async def moderator_logout(
    app: AppDep, config: ConfigDep, auth_token: OptionalAuthTokenDep, x_auth_id: XAuthIdDep, response: Response
) -> Envelope[MessageData]:
    await app.moderator_logout(auth_token, x_auth_id)
    clear_session_cookie(response, config)
    return ok(MessageData(message="Logged out successfully"))
