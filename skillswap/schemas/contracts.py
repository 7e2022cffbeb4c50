"""Contract request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field, model_validator

from skillswap.schemas.common import CamelModel


class Deliverable(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    due_date: datetime | None = None


class ContractCreateRequest(CamelModel):
    title: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=20000)
    terms: str = Field(min_length=1, max_length=50000)
    amount: float | None = Field(default=None, gt=0)
    payment_terms: str = Field(min_length=1, max_length=5000)
    start_date: datetime
    end_date: datetime
    deliverables: list[Deliverable] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_dates(self) -> "ContractCreateRequest":
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class ContractUpdateRequest(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=20000)
    terms: str | None = Field(default=None, min_length=1, max_length=50000)
    amount: float | None = Field(default=None, gt=0)
    payment_terms: str | None = Field(default=None, min_length=1, max_length=5000)
    start_date: datetime | None = None
    end_date: datetime | None = None
    deliverables: list[Deliverable] | None = None


class ContractSignRequest(CamelModel):
    ip_address: str | None = Field(default=None, max_length=64)


class ContractTerminateRequest(CamelModel):
    termination_reason: str = Field(min_length=1, max_length=5000)


class ContractResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    client_id: int
    freelancer_id: int
    title: str
    description: str
    terms: str
    amount: float
    payment_terms: str
    start_date: datetime
    end_date: datetime
    deliverables: list[dict[str, Any]] = Field(default_factory=list)
    client_signed: bool
    client_signed_at: datetime | None = None
    freelancer_signed: bool
    freelancer_signed_at: datetime | None = None
    status: str
    termination_reason: str | None = None
    termination_date: datetime | None = None
    content_hash: str | None = None
    versions: list[dict[str, Any]] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
