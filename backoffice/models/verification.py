"""Verification entries. Invitations are stored here with a JSON payload."""

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IdMixin, TimestampMixin


class Verification(IdMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "verifications"

    identifier: str = Field(nullable=False, index=True)  # target email
    value: str = Field(nullable=False, sa_type=sa.Text)
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
