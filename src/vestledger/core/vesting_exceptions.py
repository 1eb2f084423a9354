"""
Vesting ledger exception hierarchy.

Provides typed exceptions for ledger operations so callers can tell an
authorization failure from bad input, a missing record, or a broken
numeric invariant.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class VestingError(Exception):
    """Base exception for all vesting ledger errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== Authorization ====================


class UnauthorizedError(VestingError):
    """Raised when the caller lacks the required role or identity."""

    def __init__(self, message: str = "Unauthorized", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


# ==================== Lookup ====================


class NotFoundError(VestingError):
    """Raised when a ledger, config or proposal record does not exist."""
    pass


# ==================== Validation ====================


class InvalidInputError(VestingError):
    """Raised for malformed schedules, bad addresses, excessive TTLs and similar."""
    pass


class InvalidAddressError(InvalidInputError):
    """Raised when an address is empty or not in canonical lowercase form."""
    pass


class ScheduleInvalidError(InvalidInputError):
    """Raised when a vesting schedule violates its point ordering rule."""

    def __init__(self, address: str, **kwargs: Any) -> None:
        super().__init__(
            f"Vesting schedule error on addr: {address}. Should satisfy: "
            "start < end and at_start < total",
            **kwargs,
        )
        self.address = address


# ==================== Amounts ====================


class AmountNotAvailableError(VestingError):
    """Raised when a requested claim exceeds the vested, unreleased balance."""

    def __init__(self, message: str = "Amount is not available!", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class DepositMismatchError(VestingError):
    """Raised when a deposit does not equal the sum of its schedules' totals."""

    def __init__(self, expected: int, received: int, **kwargs: Any) -> None:
        super().__init__(
            "Vesting schedule amount error. The total amount should be equal "
            f"to the deposited amount ({expected} != {received}).",
            **kwargs,
        )
        self.expected = expected
        self.received = received


# ==================== Ownership ====================


class ExpiredError(VestingError):
    """Raised when an ownership proposal is accepted after its TTL."""
    pass


# ==================== Arithmetic ====================


class VestingArithmeticError(VestingError):
    """Checked arithmetic failure. Always signals a broken data invariant."""
    pass


class ArithmeticOverflowError(VestingArithmeticError):
    """Raised when an amount would exceed the unsigned 128-bit range."""
    pass


class ArithmeticUnderflowError(VestingArithmeticError):
    """Raised when an amount would drop below zero."""
    pass


# ==================== Storage ====================


class StorageError(VestingError):
    """Raised when the backing store fails or holds corrupted data."""
    pass


# ==================== Utility Functions ====================


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, message, and any additional details
    """
    context: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, VestingError):
        context["recoverable"] = exc.recoverable
        if exc.details:
            context["details"] = exc.details

    if isinstance(exc, ScheduleInvalidError):
        context["address"] = exc.address

    if isinstance(exc, DepositMismatchError):
        context["expected"] = exc.expected
        context["received"] = exc.received

    return context
