"""Bid request schemas.

Responses are rendered by ``BidStore.to_embedded`` / ``to_standalone`` so
both views come from the same row.
"""

from __future__ import annotations

from pydantic import Field, field_validator

from skillswap.schemas.common import CamelModel


class Milestone(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    amount: float = Field(ge=0)
    delivery_time: int | None = Field(default=None, ge=1)


class BidSubmitRequest(CamelModel):
    amount: float = Field(gt=0)
    delivery_time: int = Field(ge=1)
    proposal: str = Field(min_length=1, max_length=10000)
    milestones: list[Milestone] = Field(default_factory=list)

    @field_validator("proposal")
    @classmethod
    def strip_proposal(cls, value: str) -> str:
        return value.strip()


class BidRejectRequest(CamelModel):
    rejection_reason: str | None = Field(default=None, max_length=2000)


class CounterOfferRequest(CamelModel):
    amount: float = Field(gt=0)
    delivery_time: int = Field(ge=1)
    message: str = Field(min_length=1, max_length=5000)


class CounterOfferAcceptRequest(CamelModel):
    amount: float | None = Field(default=None, gt=0)
    delivery_time: int | None = Field(default=None, ge=1)
