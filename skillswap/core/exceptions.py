"""Custom exceptions for the SkillSwap negotiation service."""


class SkillSwapException(Exception):
    """Base exception for SkillSwap application."""

    code = "ERROR"

    def __init__(self, message: str = "", code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class ValidationError(SkillSwapException):
    """Raised when validation fails."""

    code = "VALIDATION_ERROR"


class NotFoundError(SkillSwapException):
    """Raised when a resource is not found."""

    code = "NOT_FOUND"


class ProfileMissingError(NotFoundError):
    """Raised when the acting user has no client/freelancer profile."""

    code = "PROFILE_MISSING"


class AuthenticationError(SkillSwapException):
    """Raised when authentication fails."""

    code = "UNAUTHENTICATED"


class AuthorizationError(SkillSwapException):
    """Raised when the caller lacks permission for an operation."""

    code = "FORBIDDEN"


class NotOwnerError(AuthorizationError):
    """Raised when the actor is neither the project owner nor the bid owner."""

    code = "NOT_OWNER"


class InvalidStateError(SkillSwapException):
    """Raised when a transition is attempted from a state that does not permit it."""

    code = "INVALID_STATE"


class ProjectNotOpenError(InvalidStateError):
    code = "PROJECT_NOT_OPEN"


class DuplicateBidError(InvalidStateError):
    code = "DUPLICATE_BID"


class BidNotPendingError(InvalidStateError):
    code = "BID_NOT_PENDING"


class NoCounterOfferError(InvalidStateError):
    code = "NO_COUNTER_OFFER"


class ContractStateError(InvalidStateError):
    code = "CONTRACT_STATE"


class ConfigurationError(SkillSwapException):
    """Raised when configuration is invalid."""

    code = "CONFIGURATION_ERROR"
