"""
Admin command layer: privileged operations over users, organizations,
credential accounts and invitations, plus the login-activity report.

Every command takes the caller explicitly, runs the admin guard first and
returns a ``Success`` or ``Failure`` value. Validation failures are returned
before any write. Unexpected store, hashing or dispatch errors are logged,
the transaction is rolled back, and the caller gets a generic INTERNAL failure.
"""

from __future__ import annotations

import html
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode

import structlog
from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from backoffice.core.auth import CallerIdentity, authorize_admin, hash_password
from backoffice.core.config import get_settings
from backoffice.core.email import send_email
from backoffice.core.ids import new_id
from backoffice.core.results import (
    Failure,
    Result,
    Success,
    conflict,
    forbidden,
    internal,
    not_found,
)
from backoffice.models import (
    CREDENTIAL_PROVIDER,
    Account,
    CommunityMember,
    LoginEvent,
    Organization,
    User,
    Verification,
)
from backoffice_shared.schemas.common import SuccessResponse
from backoffice_shared.schemas.invitations import (
    INVITE_TOKEN_LENGTH,
    InvitationPayload,
    InviteUserRequest,
    InviteUserResponse,
)
from backoffice_shared.schemas.organizations import OrgCreateRequest
from backoffice_shared.schemas.reports import DailyUniqueLogins
from backoffice_shared.schemas.users import UserCreateRequest

log = structlog.get_logger()

INVITATION_TTL_DAYS = 7
LOGIN_STATS_DAYS = 30


async def _fail(session: AsyncSession, event: str, message: str, **context) -> Failure:
    """Log the active exception, roll back, and report a generic failure."""
    log.exception(event, **context)
    await session.rollback()
    return internal(message)


async def _find_org(org_id: str, session: AsyncSession) -> Optional[Organization]:
    result = await session.execute(select(Organization).where(Organization.id == org_id))
    return result.scalar_one_or_none()


async def _find_user_by_email(email: str, session: AsyncSession) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


def _user_with_org(user: User, org: Optional[Organization]) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "email_verified": user.email_verified,
        "org_id": user.org_id,
        "role": user.role,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
        "organization": {"id": org.id, "name": org.name} if org else None,
    }


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

async def list_users(
    caller: Optional[CallerIdentity], session: AsyncSession
) -> Result[list[dict]]:
    """All users, each joined with its organization summary."""
    failure = authorize_admin(caller, "access user management")
    if failure:
        return failure

    try:
        result = await session.execute(
            select(User, Organization)
            .outerjoin(Organization, Organization.id == User.org_id)
            .order_by(User.created_at)
        )
        rows = result.all()
    except Exception:
        return await _fail(session, "users.list_failed", "Failed to fetch users")

    return Success([_user_with_org(user, org) for user, org in rows])


async def list_organizations(
    caller: Optional[CallerIdentity], session: AsyncSession
) -> Result[list[Organization]]:
    failure = authorize_admin(caller, "access organization management")
    if failure:
        return failure

    try:
        result = await session.execute(
            select(Organization).order_by(Organization.created_at)
        )
        orgs = list(result.scalars().all())
    except Exception:
        return await _fail(session, "orgs.list_failed", "Failed to fetch organizations")

    return Success(orgs)


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------

async def create_organization(
    caller: Optional[CallerIdentity],
    req: OrgCreateRequest,
    session: AsyncSession,
) -> Result[Organization]:
    """Create an organization. Names are unique (exact, case-sensitive match)."""
    failure = authorize_admin(caller, "create organizations")
    if failure:
        return failure

    try:
        existing = await session.execute(
            select(Organization).where(Organization.name == req.name)
        )
        if existing.scalar_one_or_none():
            return conflict("An organization with this name already exists")

        org = Organization(id=new_id(), name=req.name)
        session.add(org)
        await session.flush()
    except IntegrityError:
        await session.rollback()
        log.info("org.create_conflict", name=req.name)
        return conflict("An organization with this name already exists")
    except Exception:
        return await _fail(
            session, "org.create_failed", "Failed to create organization", name=req.name
        )

    log.info("org.created", org_id=org.id, name=org.name, created_by=caller.user_id)
    return Success(org)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

async def create_user(
    caller: Optional[CallerIdentity],
    req: UserCreateRequest,
    session: AsyncSession,
) -> Result[User]:
    """Create a pre-verified user with a password credential account."""
    failure = authorize_admin(caller, "create users")
    if failure:
        return failure

    try:
        org = await _find_org(req.org_id, session)
        if not org:
            return not_found("Organization not found")

        if await _find_user_by_email(req.email, session):
            return conflict("A user with this email already exists")
    except Exception:
        return await _fail(session, "user.create_failed", "Failed to create user")

    user_id = new_id()
    now = datetime.now(timezone.utc)

    try:
        hashed_password = hash_password(req.password)
        user = User(
            id=user_id,
            name=req.name,
            email=req.email,
            email_verified=True,
            org_id=req.org_id,
            role=req.role.value,
            created_at=now,
            updated_at=now,
        )
        session.add(user)
        await session.flush()
    except IntegrityError:
        await session.rollback()
        log.info("user.create_conflict", email=req.email)
        return conflict("A user with this email already exists")
    except Exception:
        return await _fail(session, "user.create_failed", "Failed to create user")

    # The credential row references the user row flushed above
    try:
        session.add(
            Account(
                id=new_id(),
                user_id=user_id,
                provider_id=CREDENTIAL_PROVIDER,
                account_id=user_id,
                password=hashed_password,
                created_at=now,
                updated_at=now,
            )
        )
        await session.flush()
    except Exception:
        return await _fail(
            session, "user.credential_failed", "Failed to create user", user_id=user_id
        )

    log.info(
        "user.created",
        user_id=user_id,
        org_id=req.org_id,
        role=req.role.value,
        created_by=caller.user_id,
    )
    return Success(user)


async def remove_user(
    caller: Optional[CallerIdentity],
    user_id: str,
    session: AsyncSession,
) -> Result[SuccessResponse]:
    """Remove a user with their community memberships and credential accounts."""
    failure = authorize_admin(caller, "remove users")
    if failure:
        return failure

    try:
        result = await session.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
    except Exception:
        return await _fail(session, "user.remove_failed", "Failed to remove user")

    if not user:
        return not_found("User not found")

    if user.id == caller.user_id:
        return forbidden("You cannot remove yourself")

    # Dependent rows first; the store is not assumed to cascade
    try:
        await session.execute(
            delete(CommunityMember).where(CommunityMember.user_id == user_id)
        )
        await session.execute(delete(Account).where(Account.user_id == user_id))
        await session.execute(delete(User).where(User.id == user_id))
        await session.flush()
    except Exception:
        return await _fail(
            session, "user.remove_failed", "Failed to remove user", user_id=user_id
        )

    log.info("user.removed", user_id=user_id, removed_by=caller.user_id)
    return Success(SuccessResponse())


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

def build_invite_url(token: str, email: str) -> str:
    """Registration link consumed by the sign-up flow."""
    base = get_settings().app_url.rstrip("/")
    query = urlencode({"token": token, "email": email}, safe="@")
    return f"{base}/auth/register?{query}"


def render_invitation_email(org_name: str, invite_url: str) -> str:
    name = html.escape(org_name)
    url = html.escape(invite_url, quote=True)
    return (
        f"<h1>You've been invited to join {name}</h1>\n"
        "<p>Click the link below to create your account:</p>\n"
        f'<a href="{url}">Accept Invitation</a>\n'
        f"<p>This link will expire in {INVITATION_TTL_DAYS} days.</p>\n"
    )


async def invite_user(
    caller: Optional[CallerIdentity],
    req: InviteUserRequest,
    session: AsyncSession,
) -> Result[InviteUserResponse]:
    """Store an invitation and email its registration link.

    The invitation is committed before the email goes out. If dispatch fails
    the caller gets INTERNAL and the invitation stays stored.
    """
    failure = authorize_admin(caller, "invite users")
    if failure:
        return failure

    try:
        org = await _find_org(req.org_id, session)
        if not org:
            return not_found("Organization not found")

        if await _find_user_by_email(req.email, session):
            return conflict("A user with this email already exists")

        org_name = org.name
        token = new_id(INVITE_TOKEN_LENGTH)
        now = datetime.now(timezone.utc)
        payload = InvitationPayload(token=token, org_id=req.org_id, role=req.role)
        invitation = Verification(
            id=new_id(),
            identifier=req.email,
            value=payload.model_dump_json(by_alias=True),
            expires_at=now + timedelta(days=INVITATION_TTL_DAYS),
            created_at=now,
            updated_at=now,
        )
        session.add(invitation)
        await session.commit()
    except Exception:
        return await _fail(
            session, "invitation.create_failed", "Failed to send invitation", email=req.email
        )

    invite_url = build_invite_url(token, req.email)
    try:
        await send_email(
            to=req.email,
            subject=f"Invitation to join {org_name}",
            html=render_invitation_email(org_name, invite_url),
        )
    except Exception:
        log.exception(
            "invitation.dispatch_failed", email=req.email, invitation_id=invitation.id
        )
        return internal("Failed to send invitation")

    log.info(
        "invitation.sent",
        email=req.email,
        org_id=req.org_id,
        role=req.role.value,
        invited_by=caller.user_id,
    )
    return Success(InviteUserResponse(email=req.email))


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

async def get_unique_logins_per_day(
    caller: Optional[CallerIdentity], session: AsyncSession
) -> Result[list[DailyUniqueLogins]]:
    """Distinct users logging in per calendar day, newest first, last 30 days seen."""
    failure = authorize_admin(caller, "access login stats")
    if failure:
        return failure

    day = func.date(LoginEvent.created_at)
    try:
        result = await session.execute(
            select(
                day.label("day"),
                func.count(func.distinct(LoginEvent.user_id)).label("unique_logins"),
            )
            .group_by(day)
            .order_by(day.desc())
            .limit(LOGIN_STATS_DAYS)
        )
        rows = result.all()
    except Exception:
        return await _fail(
            session, "login_stats.query_failed", "Failed to fetch unique logins per day"
        )

    return Success(
        [DailyUniqueLogins(date=row.day, unique_logins=row.unique_logins) for row in rows]
    )
