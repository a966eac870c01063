"""Reporting schemas."""

from __future__ import annotations

import datetime as dt
from typing import List

from pydantic import BaseModel


class DailyUniqueLogins(BaseModel):
    date: dt.date
    unique_logins: int


class UniqueLoginsResponse(BaseModel):
    data: List[DailyUniqueLogins]
