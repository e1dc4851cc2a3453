from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from justadrop.core.modules.user.models import UserView
from justadrop.web.cookies import clear_session_cookie, set_session_cookie
from justadrop.web.deps import AppDep, AuthTokenDep, ConfigDep, OptionalAuthTokenDep
from justadrop.web.openapi import Envelope, ErrorResponse, MessageData, ok

router = APIRouter(tags=["auth"])


class SendOtpRequest(BaseModel):
    email: str = Field(..., description="Email address to send the sign-in code to")


class VerifyOtpRequest(BaseModel):
    email: str = Field(..., description="Email address the code was sent to")
    code: str = Field(..., description="Sign-in code from the email")


class VerifyOtpData(BaseModel):
    token: str = Field(..., description="Session token for subsequent requests")
    user: UserView
    is_new_user: bool = Field(..., description="Whether the account was created by this sign-in")


class CurrentUserData(BaseModel):
    user: UserView


@router.post(
    "/auth/otp/send",
    summary="Send sign-in code",
    description="Email a one-time sign-in code. Works for new and existing accounts.",
    operation_id="sendOtp",
    responses={
        200: {"description": "Code issued"},
        400: {"model": ErrorResponse, "description": "Invalid email"},
    },
)
async def send_otp(request: SendOtpRequest, app: AppDep) -> Envelope[MessageData]:
    await app.send_otp(request.email)
    return ok(MessageData(message="OTP sent successfully"))


@router.post(
    "/auth/otp/verify",
    summary="Verify sign-in code",
    description="Exchange a sign-in code for a session. Creates the account on first sign-in.",
    operation_id="verifyOtp",
    responses={
        200: {"description": "Signed in"},
        400: {"model": ErrorResponse, "description": "Invalid input or invalid/expired code"},
        403: {"model": ErrorResponse, "description": "Account is banned or deleted"},
    },
)
async def verify_otp(request: VerifyOtpRequest, app: AppDep, config: ConfigDep, response: Response) -> Envelope[VerifyOtpData]:
    token, user, is_new_user = await app.verify_otp(request.email, request.code)
    set_session_cookie(response, token, config)
    return ok(VerifyOtpData(token=token, user=user, is_new_user=is_new_user))


@router.get(
    "/auth/me",
    summary="Get current user",
    operation_id="getCurrentUser",
    responses={
        200: {"description": "Current user"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_current_user(app: AppDep, auth_token: AuthTokenDep) -> Envelope[CurrentUserData]:
    return ok(CurrentUserData(user=await app.get_current_user(auth_token)))


@router.post(
    "/auth/logout",
    summary="End session",
    description="Invalidate the presented session and clear the session cookie.",
    operation_id="logout",
    responses={200: {"description": "Logged out"}},
)
async def logout(app: AppDep, config: ConfigDep, auth_token: OptionalAuthTokenDep, response: Response) -> Envelope[MessageData]:
    if auth_token is not None:
        await app.logout(auth_token)
    clear_session_cookie(response, config)
    return ok(MessageData(message="Logged out successfully"))
