from typing import Any
from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from justadrop.core.modules.moderator.models import ModeratorView
from justadrop.core.modules.organization.models import ApprovalStatus, OrganizationView
from justadrop.core.modules.user.models import UserView
from justadrop.web.deps import AppDep, AuthTokenDep, XAuthIdDep
from justadrop.web.openapi import Envelope, ErrorResponse, MessageData, ok

router = APIRouter(tags=["moderator"])

MODERATOR_ERRORS: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    401: {"model": ErrorResponse, "description": "Not authenticated as a moderator or x-auth-id missing/invalid"},
    404: {"model": ErrorResponse, "description": "Target not found"},
}


class SeedModeratorRequest(BaseModel):
    email: str = Field(..., description="Email address of the first moderator")


class SetActiveRequest(BaseModel):
    is_active: bool = Field(..., description="Whether the moderator may sign in")


class ReviewRequest(BaseModel):
    notes: str | None = Field(None, description="Notes shown to the organization")


class RequiredReviewRequest(BaseModel):
    notes: str = Field(..., min_length=1, description="Reason shown to the organization")


class ModeratorData(BaseModel):
    moderator: ModeratorView


class UserData(BaseModel):
    user: UserView


class OrganizationData(BaseModel):
    organization: OrganizationView


class OrganizationListData(BaseModel):
    organizations: list[OrganizationView]


@router.post(
    "/moderator/seed",
    summary="Bootstrap first moderator",
    description="Create the first moderator account. Only works while no moderator exists and requires x-auth-id.",
    operation_id="seedModerator",
    status_code=201,
    responses={
        201: {"description": "Moderator created"},
        400: {"model": ErrorResponse, "description": "Moderator already exists or invalid email"},
        401: {"model": ErrorResponse, "description": "x-auth-id missing, invalid or not configured"},
        403: {"model": ErrorResponse, "description": "User already exists"},
    },
)
async def seed_moderator(request: SeedModeratorRequest, app: AppDep, x_auth_id: XAuthIdDep) -> Envelope[ModeratorData]:
    return ok(ModeratorData(moderator=await app.seed_moderator(x_auth_id, request.email)))


@router.patch(
    "/moderator/moderators/{moderator_id}/active",
    summary="Activate or deactivate moderator",
    description="Deactivating a moderator ends all of their sessions.",
    operation_id="setModeratorActive",
    responses={200: {"description": "Moderator updated"}, **MODERATOR_ERRORS},
)
async def set_moderator_active(
    moderator_id: UUID, request: SetActiveRequest, app: AppDep, auth_token: AuthTokenDep, x_auth_id: XAuthIdDep
) -> Envelope[ModeratorData]:
    moderator = await app.set_moderator_active(auth_token, x_auth_id, moderator_id, request.is_active)
    return ok(ModeratorData(moderator=moderator))


@router.post(
    "/moderator/users/{user_id}/ban",
    summary="Ban user",
    description="Ban a user and end all of their sessions.",
    operation_id="banUser",
    responses={200: {"description": "User banned"}, **MODERATOR_ERRORS},
)
async def ban_user(user_id: UUID, app: AppDep, auth_token: AuthTokenDep, x_auth_id: XAuthIdDep) -> Envelope[UserData]:
    return ok(UserData(user=await app.ban_user(auth_token, x_auth_id, user_id)))


@router.delete(
    "/moderator/users/{user_id}",
    summary="Delete user",
    description="Soft-delete a user and end all of their sessions.",
    operation_id="deleteUser",
    responses={200: {"description": "User deleted"}, **MODERATOR_ERRORS},
)
async def delete_user(user_id: UUID, app: AppDep, auth_token: AuthTokenDep, x_auth_id: XAuthIdDep) -> Envelope[MessageData]:
    await app.delete_user(auth_token, x_auth_id, user_id)
    return ok(MessageData(message="User deleted successfully"))


@router.get(
    "/moderator/organizations",
    summary="List organizations",
    operation_id="listOrganizations",
    responses={200: {"description": "Organizations in registration order"}, **MODERATOR_ERRORS},
)
async def list_organizations(
    app: AppDep, auth_token: AuthTokenDep, x_auth_id: XAuthIdDep, status: ApprovalStatus | None = None
) -> Envelope[OrganizationListData]:
    organizations = await app.list_organizations(auth_token, x_auth_id, status)
    return ok(OrganizationListData(organizations=organizations))


@router.patch(
    "/moderator/organizations/{organization_id}/approve",
    summary="Approve organization",
    operation_id="approveOrganization",
    responses={200: {"description": "Organization approved"}, **MODERATOR_ERRORS},
)
async def approve_organization(
    organization_id: UUID, request: ReviewRequest, app: AppDep, auth_token: AuthTokenDep, x_auth_id: XAuthIdDep
) -> Envelope[OrganizationData]:
    organization = await app.approve_organization(auth_token, x_auth_id, organization_id, request.notes)
    return ok(OrganizationData(organization=organization))


@router.patch(
    "/moderator/organizations/{organization_id}/reject",
    summary="Reject organization",
    operation_id="rejectOrganization",
    responses={200: {"description": "Organization rejected"}, **MODERATOR_ERRORS},
)
async def reject_organization(
    organization_id: UUID, request: RequiredReviewRequest, app: AppDep, auth_token: AuthTokenDep, x_auth_id: XAuthIdDep
) -> Envelope[OrganizationData]:
    organization = await app.reject_organization(auth_token, x_auth_id, organization_id, request.notes)
    return ok(OrganizationData(organization=organization))


@router.patch(
    "/moderator/organizations/{organization_id}/blacklist",
    summary="Blacklist organization",
    description="Blacklisted organizations cannot sign in; their sessions end immediately.",
    operation_id="blacklistOrganization",
    responses={200: {"description": "Organization blacklisted"}, **MODERATOR_ERRORS},
)
async def blacklist_organization(
    organization_id: UUID, request: RequiredReviewRequest, app: AppDep, auth_token: AuthTokenDep, x_auth_id: XAuthIdDep
) -> Envelope[OrganizationData]:
    organization = await app.blacklist_organization(auth_token, x_auth_id, organization_id, request.notes)
    return ok(OrganizationData(organization=organization))
