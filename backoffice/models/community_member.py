"""Community membership. Owned by the communities feature; removed with its user."""

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IdMixin, _utcnow


class CommunityMember(IdMixin, SQLModel, table=True):
    __tablename__ = "community_members"

    community_id: str = Field(nullable=False, index=True)
    user_id: str = Field(foreign_key="users.id", nullable=False, index=True)
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
