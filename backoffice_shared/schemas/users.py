"""User management schemas for the admin API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .common import Role
from .organizations import OrgSummary

MIN_PASSWORD_LENGTH = 8


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class UserCreateRequest(BaseModel):
    """Create a user with a password. Admin-created users are pre-verified."""
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    role: Role
    org_id: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserResponse(BaseModel):
    """Single user response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    email_verified: bool
    org_id: Optional[str] = None
    role: Role
    created_at: datetime
    updated_at: datetime


class UserWithOrgResponse(UserResponse):
    """User joined with its organization summary."""
    organization: Optional[OrgSummary] = None


class UserListResponse(BaseModel):
    data: List[UserWithOrgResponse]
