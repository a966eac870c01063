"""Organization schemas for the admin API."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class OrgCreateRequest(BaseModel):
    """Create a new organization."""
    name: str = Field(min_length=1)


class OrgSummary(BaseModel):
    """Organization as embedded in a user listing."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class OrgResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: datetime
    updated_at: datetime


class OrgListResponse(BaseModel):
    data: List[OrgResponse]
