"""User model."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import IdMixin, TimestampMixin


class User(IdMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    name: str = Field(nullable=False)
    email: str = Field(unique=True, nullable=False, index=True)
    email_verified: bool = Field(default=False, nullable=False)
    org_id: Optional[str] = Field(default=None, foreign_key="organizations.id", index=True)
    role: str = Field(default="user", nullable=False)  # admin | user
