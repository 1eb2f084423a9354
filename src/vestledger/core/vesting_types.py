"""
Vesting ledger data model.

Amounts are unsigned 128-bit integers held in plain ``int`` values; every
balance update goes through ``checked_add`` / ``checked_sub`` so an
overflow or underflow is a hard failure rather than wraparound. Amounts are
serialized as decimal strings so they survive JSON consumers that only
understand doubles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .config import UINT128_MAX
from .vesting_exceptions import (
    ArithmeticOverflowError,
    ArithmeticUnderflowError,
    InvalidInputError,
)


def checked_add(a: int, b: int) -> int:
    """Add two amounts, raising if the result leaves the uint128 range."""
    result = a + b
    if result > UINT128_MAX:
        raise ArithmeticOverflowError(
            f"Overflow: cannot add {a} + {b}", details={"operation": "add"}
        )
    return result


def checked_sub(a: int, b: int) -> int:
    """Subtract two amounts, raising if the result would be negative."""
    if b > a:
        raise ArithmeticUnderflowError(
            f"Underflow: cannot sub {a} - {b}", details={"operation": "sub"}
        )
    return a - b


def parse_amount(value: Any, name: str = "amount") -> int:
    """Parse an amount from an int or decimal string."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, str):
        if not value.isdigit():
            raise InvalidInputError(f"{name} must be a non-negative integer, got {value!r}")
        value = int(value)
    if not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer, got {value!r}")
    if value < 0 or value > UINT128_MAX:
        raise InvalidInputError(f"{name} out of range: {value}")
    return value


def parse_time(value: Any, name: str = "time") -> int:
    """Parse a timestamp in whole seconds."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be integer seconds, got {value!r}")
    if value < 0:
        raise InvalidInputError(f"{name} cannot be negative: {value}")
    return value


class Clawbackable(Enum):
    """Revocability of an account's schedules.

    ``UNSPECIFIED`` behaves like ``ALLOWED``; it is kept distinct so a record
    round-trips to the same flag it was registered with.
    """

    ALLOWED = "allowed"
    DENIED = "denied"
    UNSPECIFIED = "unspecified"

    @property
    def permits_clawback(self) -> bool:
        return self is not Clawbackable.DENIED

    @classmethod
    def from_flag(cls, flag: Optional[bool]) -> "Clawbackable":
        if flag is None:
            return cls.UNSPECIFIED
        if not isinstance(flag, bool):
            raise InvalidInputError(f"clawbackable must be a boolean, got {flag!r}")
        return cls.ALLOWED if flag else cls.DENIED

    def to_flag(self) -> Optional[bool]:
        if self is Clawbackable.UNSPECIFIED:
            return None
        return self is Clawbackable.ALLOWED


@dataclass(frozen=True)
class SchedulePoint:
    """Cumulative-amount checkpoint at a point in time."""

    time: int
    amount: int

    def __post_init__(self) -> None:
        parse_time(self.time, "schedule point time")
        if isinstance(self.amount, str):
            raise InvalidInputError(f"schedule point amount must be an integer, got {self.amount!r}")
        parse_amount(self.amount, "schedule point amount")

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "amount": str(self.amount)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchedulePoint":
        try:
            return cls(
                time=parse_time(data["time"]),
                amount=parse_amount(data["amount"]),
            )
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(f"Malformed schedule point: {data!r}") from exc


@dataclass(frozen=True)
class VestingSchedule:
    """
    Linear release between two checkpoints.

    Without an end point the schedule is a cliff: ``start_point.amount``
    unlocks at ``start_point.time`` and nothing accrues afterwards.
    """

    start_point: SchedulePoint
    end_point: Optional[SchedulePoint] = None

    def is_valid(self) -> bool:
        if self.end_point is None:
            return True
        return (
            self.start_point.time < self.end_point.time
            and self.start_point.amount < self.end_point.amount
        )

    @property
    def total_amount(self) -> int:
        """Maximum amount this schedule can ever release."""
        if self.end_point is not None:
            return self.end_point.amount
        return self.start_point.amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_point": self.start_point.to_dict(),
            "end_point": self.end_point.to_dict() if self.end_point else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VestingSchedule":
        try:
            start = SchedulePoint.from_dict(data["start_point"])
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(f"Malformed vesting schedule: {data!r}") from exc
        end_data = data.get("end_point")
        end = SchedulePoint.from_dict(end_data) if end_data is not None else None
        return cls(start_point=start, end_point=end)


@dataclass
class VestingInfo:
    """
    Per-account vesting record.

    ``settled_schedules`` holds the indexes of schedules a clawback has
    already paid out in full; they count at their total from then on.
    """

    schedules: List[VestingSchedule] = field(default_factory=list)
    released_amount: int = 0
    clawbackable: Clawbackable = Clawbackable.UNSPECIFIED
    settled_schedules: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schedules": [s.to_dict() for s in self.schedules],
            "released_amount": str(self.released_amount),
            "clawbackable": self.clawbackable.to_flag(),
            "settled_schedules": list(self.settled_schedules),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VestingInfo":
        schedules = [VestingSchedule.from_dict(s) for s in data.get("schedules", [])]
        settled = data.get("settled_schedules", [])
        if not isinstance(settled, list) or not all(
            isinstance(i, int) and not isinstance(i, bool) and 0 <= i < len(schedules)
            for i in settled
        ):
            raise InvalidInputError(f"Malformed settled schedule indexes: {settled!r}")
        return cls(
            schedules=schedules,
            released_amount=parse_amount(data.get("released_amount", 0), "released_amount"),
            clawbackable=Clawbackable.from_flag(data.get("clawbackable")),
            settled_schedules=sorted(set(settled)),
        )


@dataclass
class VestingAccount:
    """One entry of a deposit batch."""

    address: str
    schedules: List[VestingSchedule]
    clawbackable: Clawbackable = Clawbackable.UNSPECIFIED

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VestingAccount":
        try:
            address = data["address"]
            schedules = [VestingSchedule.from_dict(s) for s in data["schedules"]]
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(f"Malformed vesting account: {data!r}") from exc
        return cls(
            address=address,
            schedules=schedules,
            clawbackable=Clawbackable.from_flag(data.get("clawbackable")),
        )


@dataclass
class LedgerConfig:
    """Singleton ledger configuration."""

    owner: str
    token_addr: str

    def to_dict(self) -> Dict[str, Any]:
        return {"owner": self.owner, "token_addr": self.token_addr}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerConfig":
        return cls(owner=data["owner"], token_addr=data["token_addr"])


@dataclass
class OwnershipProposal:
    """Pending ownership handover. ``ttl`` is an absolute expiry time."""

    owner: str
    ttl: int

    def is_expired(self, now: int) -> bool:
        return now > self.ttl

    def to_dict(self) -> Dict[str, Any]:
        return {"owner": self.owner, "ttl": self.ttl}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OwnershipProposal":
        return cls(owner=data["owner"], ttl=int(data["ttl"]))


@dataclass(frozen=True)
class TransferIntent:
    """Request for the settlement token service to move ``amount`` to ``recipient``."""

    token_addr: str
    recipient: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_addr": self.token_addr,
            "recipient": self.recipient,
            "amount": str(self.amount),
        }
