"""Pydantic schema package for API contracts."""

from skillswap.schemas.bids import (
    BidRejectRequest,
    BidSubmitRequest,
    CounterOfferAcceptRequest,
    CounterOfferRequest,
    Milestone,
)
from skillswap.schemas.common import CamelModel, ErrorEnvelope, envelope
from skillswap.schemas.contracts import (
    ContractCreateRequest,
    ContractResponse,
    ContractSignRequest,
    ContractTerminateRequest,
    ContractUpdateRequest,
    Deliverable,
)
from skillswap.schemas.notifications import NotificationPreferencesRequest, NotificationResponse
from skillswap.schemas.projects import ProjectCreateRequest

__all__ = [
    "BidRejectRequest",
    "BidSubmitRequest",
    "CamelModel",
    "ContractCreateRequest",
    "ContractResponse",
    "ContractSignRequest",
    "ContractTerminateRequest",
    "ContractUpdateRequest",
    "CounterOfferAcceptRequest",
    "CounterOfferRequest",
    "Deliverable",
    "ErrorEnvelope",
    "Milestone",
    "NotificationPreferencesRequest",
    "NotificationResponse",
    "ProjectCreateRequest",
    "envelope",
]
