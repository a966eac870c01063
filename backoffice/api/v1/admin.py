"""
Admin API endpoints.

GET    /api/v1/admin/users                 — List users with their organization
POST   /api/v1/admin/users                 — Create a user with a password
DELETE /api/v1/admin/users/{userId}        — Remove a user
GET    /api/v1/admin/orgs                  — List organizations
POST   /api/v1/admin/orgs                  — Create an organization
POST   /api/v1/admin/invitations           — Invite an email to an organization
GET    /api/v1/admin/stats/unique-logins   — Unique logins per day (last 30 days seen)
"""

from __future__ import annotations

from typing import TypeVar

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.auth import CallerIdentity, require_admin
from backoffice.core.database import get_session
from backoffice.core.results import Failure, Result
from backoffice.services import admin as admin_service
from backoffice_shared.schemas.common import SuccessResponse
from backoffice_shared.schemas.invitations import InviteUserRequest, InviteUserResponse
from backoffice_shared.schemas.organizations import (
    OrgCreateRequest,
    OrgListResponse,
    OrgResponse,
)
from backoffice_shared.schemas.reports import UniqueLoginsResponse
from backoffice_shared.schemas.users import (
    UserCreateRequest,
    UserListResponse,
    UserResponse,
    UserWithOrgResponse,
)

T = TypeVar("T")

router = APIRouter()


def _unwrap(result: Result[T]) -> T:
    """Return the success value or raise the mapped HTTP error."""
    if isinstance(result, Failure):
        raise HTTPException(status_code=result.status_code, detail=result.message)
    return result.value


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@router.get("/users", response_model=UserListResponse)
async def list_users(
    caller: CallerIdentity = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """List all users, each with its organization summary."""
    items = _unwrap(await admin_service.list_users(caller, session))
    return UserListResponse(data=[UserWithOrgResponse(**item) for item in items])


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(
    body: UserCreateRequest,
    caller: CallerIdentity = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Create a pre-verified user with a password credential."""
    user = _unwrap(await admin_service.create_user(caller, body, session))
    return UserResponse.model_validate(user)


@router.delete("/users/{userId}", response_model=SuccessResponse)
async def remove_user(
    userId: str,
    caller: CallerIdentity = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Remove a user together with their memberships and credentials."""
    return _unwrap(await admin_service.remove_user(caller, userId, session))


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------

@router.get("/orgs", response_model=OrgListResponse)
async def list_orgs(
    caller: CallerIdentity = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    orgs = _unwrap(await admin_service.list_organizations(caller, session))
    return OrgListResponse(data=[OrgResponse.model_validate(org) for org in orgs])


@router.post("/orgs", response_model=OrgResponse, status_code=201)
async def create_org(
    body: OrgCreateRequest,
    caller: CallerIdentity = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Create an organization. Names must be unique."""
    org = _unwrap(await admin_service.create_organization(caller, body, session))
    return OrgResponse.model_validate(org)


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

@router.post("/invitations", response_model=InviteUserResponse, status_code=201)
async def invite_user(
    body: InviteUserRequest,
    caller: CallerIdentity = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Invite an email address to register into an organization with a role."""
    return _unwrap(await admin_service.invite_user(caller, body, session))


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

@router.get("/stats/unique-logins", response_model=UniqueLoginsResponse)
async def unique_logins_per_day(
    caller: CallerIdentity = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    rows = _unwrap(await admin_service.get_unique_logins_per_day(caller, session))
    return UniqueLoginsResponse(data=rows)
