"""Base mixins for SQLModel tables."""

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from backoffice.core.ids import new_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin(SQLModel):
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": _utcnow},
        sa_type=sa.DateTime(timezone=True),
    )


class IdMixin(SQLModel):
    id: str = Field(
        default_factory=new_id,
        primary_key=True,
        index=True,
        nullable=False,
    )
