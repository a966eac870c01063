"""Credential account model (password-based login bound to a user)."""

from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IdMixin, TimestampMixin

CREDENTIAL_PROVIDER = "credential"


class Account(IdMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "accounts"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "provider_id", name="uq_accounts_user_provider"),
    )

    user_id: str = Field(foreign_key="users.id", nullable=False, index=True)
    provider_id: str = Field(nullable=False)
    account_id: str = Field(nullable=False)
    password: Optional[str] = None  # bcrypt hash for credential accounts
