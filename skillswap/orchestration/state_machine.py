"""Canonical state transition helpers for negotiation entities."""

from __future__ import annotations

from skillswap.core.enums import BidStatus, ContractStatus


class InvalidTransitionError(ValueError):
    """Raised when a disallowed state transition is attempted."""


class StateMachine:
    """Simple in-memory state machine over a transition table."""

    def __init__(self, transitions: dict[str, set[str]]) -> None:
        self._transitions = transitions

    def can_transition(self, current: str, target: str) -> bool:
        return target in self._transitions.get(current, set())

    def assert_transition(self, current: str, target: str) -> None:
        if not self.can_transition(current=current, target=target):
            raise InvalidTransitionError(f"Transition not allowed: {current} -> {target}")

    def is_terminal(self, current: str) -> bool:
        return not self._transitions.get(current)


BID_STATES = StateMachine(
    {
        BidStatus.PENDING.value: {
            BidStatus.ACCEPTED.value,
            BidStatus.REJECTED.value,
            BidStatus.WITHDRAWN.value,
            BidStatus.COUNTERED.value,
        },
        BidStatus.COUNTERED.value: {BidStatus.PENDING.value},
        BidStatus.ACCEPTED.value: set(),
        BidStatus.REJECTED.value: set(),
        BidStatus.WITHDRAWN.value: set(),
    }
)

CONTRACT_STATES = StateMachine(
    {
        ContractStatus.DRAFT.value: {
            ContractStatus.PENDING.value,
            ContractStatus.ACTIVE.value,
            ContractStatus.TERMINATED.value,
        },
        ContractStatus.PENDING.value: {
            ContractStatus.ACTIVE.value,
            ContractStatus.TERMINATED.value,
        },
        ContractStatus.ACTIVE.value: {
            ContractStatus.COMPLETED.value,
            ContractStatus.TERMINATED.value,
        },
        ContractStatus.DISPUTED.value: set(),
        ContractStatus.COMPLETED.value: set(),
        ContractStatus.TERMINATED.value: set(),
    }
)
