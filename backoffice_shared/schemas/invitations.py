"""Invitation schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .common import Role

INVITE_TOKEN_LENGTH = 32


class InviteUserRequest(BaseModel):
    """Invite an email address to register into an organization."""
    email: EmailStr
    org_id: str
    role: Role


class InvitationPayload(BaseModel):
    """JSON stored in the verification record's ``value`` column.

    Keys are camelCase because the registration flow reads them as written.
    """
    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(min_length=INVITE_TOKEN_LENGTH, max_length=INVITE_TOKEN_LENGTH)
    org_id: str = Field(alias="orgId")
    role: Role


class InviteUserResponse(BaseModel):
    success: bool = True
    email: str
