"""Project request schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from skillswap.schemas.common import CamelModel


class ProjectCreateRequest(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=20000)
    category: str | None = Field(default=None, max_length=100)
    budget: float = Field(gt=0)
    deadline: datetime | None = None
