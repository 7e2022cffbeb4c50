"""Enums for the SkillSwap negotiation service.

Status values use title case because they are persisted and returned to the
web client verbatim ("Pending", "In Progress", ...).
"""

from enum import Enum


class UserRole(Enum):
    """Roles a marketplace user can hold."""

    CLIENT = "client"
    FREELANCER = "freelancer"
    ADMIN = "admin"


class BidStatus(Enum):
    """Status of a bid in the negotiation lifecycle."""

    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    WITHDRAWN = "Withdrawn"
    COUNTERED = "Countered"


class BidAction(Enum):
    """Actions that drive bid transitions."""

    SUBMIT = "submit"
    ACCEPT = "accept"
    REJECT = "reject"
    WITHDRAW = "withdraw"
    COUNTER = "counter"
    COUNTER_ACCEPT = "counter_accept"
    COUNTER_REJECT = "counter_reject"


class ProjectStatus(Enum):
    """Status of a project."""

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ContractStatus(Enum):
    """Status of contracts."""

    DRAFT = "Draft"
    PENDING = "Pending"
    ACTIVE = "Active"
    COMPLETED = "Completed"
    TERMINATED = "Terminated"
    DISPUTED = "Disputed"


class NotificationType(Enum):
    """Notification types emitted by the negotiation core."""

    BID_RECEIVED = "bid_received"
    BID_ACCEPTED = "bid_accepted"
    BID_REJECTED = "bid_rejected"
    BID_WITHDRAWN = "bid_withdrawn"
    BID_COUNTERED = "bid_countered"
    COUNTER_OFFER_ACCEPTED = "counter_offer_accepted"
    COUNTER_OFFER_REJECTED = "counter_offer_rejected"
    CONTRACT_CREATED = "contract_created"
    CONTRACT_SIGNED = "contract_signed"
    CONTRACT_ACTIVATED = "contract_activated"
    CONTRACT_TERMINATED = "contract_terminated"


class RealtimeEvent(Enum):
    """Realtime channel event names consumed by the web client."""

    BID_UPDATE = "bidUpdate"
    COUNTER_OFFER = "counterOffer"
    COUNTER_OFFER_RECEIVED = "counterOfferReceived"
    BID_ACCEPTED_UPDATE = "bidAcceptedUpdate"
    YOUR_BID_ACCEPTED = "yourBidAccepted"
    COUNTER_OFFER_RESPONSE_RECEIVED = "counterOfferResponseReceived"
    CONTRACT_UPDATE = "contractUpdate"


# Bids in these states block a new submission by the same freelancer.
ACTIVE_BID_STATUSES = (
    BidStatus.PENDING.value,
    BidStatus.COUNTERED.value,
    BidStatus.ACCEPTED.value,
)

# SMS is opt-in per type; these are enabled by default.
DEFAULT_SMS_TYPES = (
    NotificationType.BID_ACCEPTED.value,
    NotificationType.CONTRACT_SIGNED.value,
)
