"""Pure contract lifecycle rules: signature-driven status and termination."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from skillswap.core.enums import ContractStatus
from skillswap.core.exceptions import ContractStateError
from skillswap.orchestration.state_machine import CONTRACT_STATES

DRAFT = ContractStatus.DRAFT.value
PENDING = ContractStatus.PENDING.value
ACTIVE = ContractStatus.ACTIVE.value
TERMINATED = ContractStatus.TERMINATED.value

CLIENT = "client"
FREELANCER = "freelancer"

# Fields covered by the content hash; a change to any of them is a new version.
HASHED_FIELDS = (
    "title",
    "description",
    "terms",
    "amount",
    "payment_terms",
    "start_date",
    "end_date",
    "deliverables",
)


@dataclass(frozen=True)
class SignaturePlan:
    changes: dict[str, Any]
    previous_status: str
    next_status: str
    already_signed: bool

    @property
    def activated(self) -> bool:
        return self.previous_status != ACTIVE and self.next_status == ACTIVE


def derive_status(current: str, client_signed: bool, freelancer_signed: bool) -> str:
    """Status as a function of the two signatures; only Draft/Pending move."""
    if current not in (DRAFT, PENDING):
        return current
    if client_signed and freelancer_signed:
        return ACTIVE
    if client_signed or freelancer_signed:
        return PENDING
    return current


def plan_signature(
    current: str,
    client_signed: bool,
    freelancer_signed: bool,
    party: str,
    now: datetime,
    ip_address: str | None = None,
) -> SignaturePlan:
    if party not in (CLIENT, FREELANCER):
        raise ValueError(f"unknown signing party: {party}")
    if current not in (DRAFT, PENDING, ACTIVE):
        raise ContractStateError(f"Cannot sign a {current.lower()} contract")

    already_signed = client_signed if party == CLIENT else freelancer_signed
    changes: dict[str, Any] = {}
    if not already_signed:
        changes = {
            f"{party}_signed": True,
            f"{party}_signed_at": now,
            f"{party}_signed_ip": ip_address,
        }
        if party == CLIENT:
            client_signed = True
        else:
            freelancer_signed = True

    next_status = derive_status(current, client_signed, freelancer_signed)
    if next_status != current:
        CONTRACT_STATES.assert_transition(current, next_status)
        changes["status"] = next_status
    return SignaturePlan(
        changes=changes,
        previous_status=current,
        next_status=next_status,
        already_signed=already_signed,
    )


def assert_can_terminate(current: str) -> None:
    if not CONTRACT_STATES.can_transition(current, TERMINATED):
        raise ContractStateError("Cannot terminate a completed or already terminated contract")


def assert_editable(current: str) -> None:
    if CONTRACT_STATES.is_terminal(current):
        raise ContractStateError("Cannot update a completed or terminated contract")


def content_hash(fields: dict[str, Any]) -> str:
    """Stable sha256 over the hashed contract fields."""
    canonical = {name: fields.get(name) for name in HASHED_FIELDS}
    encoded = json.dumps(canonical, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def next_version(versions: list[dict[str, Any]] | None, digest: str, changes: str, now: datetime) -> list[dict[str, Any]]:
    history = list(versions or [])
    history.append(
        {
            "versionNumber": len(history) + 1,
            "changes": changes,
            "date": now.isoformat(),
            "hash": digest,
        }
    )
    return history
