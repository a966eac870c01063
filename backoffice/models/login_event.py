"""Login event log, appended by the login flow and read by the activity report."""

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IdMixin, _utcnow


class LoginEvent(IdMixin, SQLModel, table=True):
    __tablename__ = "login_events"

    user_id: str = Field(nullable=False, index=True)
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        index=True,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
