from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from justadrop.core.modules.organization.models import OrganizationView
from justadrop.web.cookies import clear_session_cookie, set_session_cookie
from justadrop.web.deps import AppDep, AuthTokenDep, ConfigDep, OptionalAuthTokenDep
from justadrop.web.openapi import Envelope, ErrorResponse, MessageData, ok

router = APIRouter(tags=["organizations"])


class RegisterOrganizationRequest(BaseModel):
    name: str = Field(..., description="Organization name")
    email: str = Field(..., description="Login and contact email")
    password: str = Field(..., description="At least 8 characters, no whitespace")


class OrganizationLoginRequest(BaseModel):
    email: str
    password: str


class OrganizationData(BaseModel):
    organization: OrganizationView


class OrganizationLoginData(BaseModel):
    token: str = Field(..., description="Organization session token")
    organization: OrganizationView


@router.post(
    "/organizations/register",
    summary="Register organization",
    description="Register an organization. It starts pending moderator review but may sign in right away.",
    operation_id="registerOrganization",
    status_code=201,
    responses={
        201: {"description": "Organization registered"},
        400: {"model": ErrorResponse, "description": "Invalid input or email already registered"},
    },
)
async def register_organization(request: RegisterOrganizationRequest, app: AppDep) -> Envelope[OrganizationData]:
    organization = await app.register_organization(request.name, request.email, request.password)
    return ok(OrganizationData(organization=organization))


@router.post(
    "/organizations/login",
    summary="Organization sign-in",
    operation_id="loginOrganization",
    responses={
        200: {"description": "Signed in"},
        401: {"model": ErrorResponse, "description": "Invalid email or password"},
        403: {"model": ErrorResponse, "description": "Organization is blacklisted"},
    },
)
async def login_organization(
    request: OrganizationLoginRequest, app: AppDep, config: ConfigDep, response: Response
) -> Envelope[OrganizationLoginData]:
    token, organization = await app.login_organization(request.email, request.password)
    set_session_cookie(response, token, config)
    return ok(OrganizationLoginData(token=token, organization=organization))


@router.get(
    "/organizations/me",
    summary="Get current organization",
    operation_id="getCurrentOrganization",
    responses={
        200: {"description": "Current organization"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_current_organization(app: AppDep, auth_token: AuthTokenDep) -> Envelope[OrganizationData]:
    return ok(OrganizationData(organization=await app.get_current_organization(auth_token)))


@router.post(
    "/organizations/logout",
    summary="End organization session",
    operation_id="organizationLogout",
    responses={200: {"description": "Logged out"}},
)
async def organization_logout(
    app: AppDep, config: ConfigDep, auth_token: OptionalAuthTokenDep, response: Response
) -> Envelope[MessageData]:
    if auth_token is not None:
        await app.organization_logout(auth_token)
    clear_session_cookie(response, config)
    return ok(MessageData(message="Logged out successfully"))
