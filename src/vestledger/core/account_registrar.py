"""
Registration of funded vesting accounts.

A deposit batch is validated and summed completely before anything is
written, so a batch that fails (bad schedule, bad address, amount mismatch)
leaves the ledger untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .address_validation import validate_address
from .vesting_exceptions import DepositMismatchError, ScheduleInvalidError
from .vesting_ledger import OperationContext
from .vesting_types import VestingAccount, VestingInfo, VestingSchedule, checked_add

logger = logging.getLogger(__name__)


@dataclass
class RegistrationResult:
    deposited: int
    addresses: List[str] = field(default_factory=list)

    @property
    def attributes(self) -> List[tuple]:
        return [("action", "register_vesting_accounts"), ("deposited", str(self.deposited))]


def assert_vesting_schedules(address: str, schedules: Sequence[VestingSchedule]) -> None:
    """Raise ``ScheduleInvalidError`` naming ``address`` if any schedule is malformed."""
    for schedule in schedules:
        if not schedule.is_valid():
            raise ScheduleInvalidError(address)


def register_vesting_accounts(
    ctx: OperationContext,
    vesting_accounts: Sequence[VestingAccount],
    deposited_amount: int,
) -> RegistrationResult:
    """
    Create or extend vesting records from a single deposit.

    New schedules are appended after any the account already has; the
    account's ``released_amount`` carries over and its revocability flag is
    replaced by the one in the deposit. The same address may appear more than
    once in a batch; entries are merged in order.

    Args:
        ctx: Operation context
        vesting_accounts: Accounts funded by this deposit
        deposited_amount: Amount actually received from the token service

    Returns:
        RegistrationResult with the summed deposit and touched addresses

    Raises:
        InvalidAddressError: If an address is not canonical
        ScheduleInvalidError: If a schedule violates its ordering rule
        DepositMismatchError: If schedule totals differ from ``deposited_amount``
        ArithmeticOverflowError: If the schedule totals overflow
    """
    to_deposit = 0
    staged: Dict[str, VestingInfo] = {}

    for account in vesting_accounts:
        address = validate_address(account.address)
        assert_vesting_schedules(address, account.schedules)

        for schedule in account.schedules:
            to_deposit = checked_add(to_deposit, schedule.total_amount)

        existing = staged.get(address) or ctx.store.may_load_vesting_info(address)
        if existing is not None:
            schedules = list(existing.schedules) + list(account.schedules)
            released_amount = existing.released_amount
            settled = list(existing.settled_schedules)
        else:
            schedules = list(account.schedules)
            released_amount = 0
            settled = []

        staged[address] = VestingInfo(
            schedules=schedules,
            released_amount=released_amount,
            clawbackable=account.clawbackable,
            settled_schedules=settled,
        )

    if to_deposit != deposited_amount:
        logger.warning(
            "Rejected vesting deposit: schedule totals do not match deposit",
            extra={
                "event": "vesting.register_rejected",
                "expected": str(to_deposit),
                "received": str(deposited_amount),
            },
        )
        raise DepositMismatchError(to_deposit, deposited_amount)

    for address, info in staged.items():
        ctx.store.save_vesting_info(address, info)

    logger.info(
        "Registered %d vesting accounts",
        len(staged),
        extra={
            "event": "vesting.registered",
            "accounts": len(staged),
            "deposited": str(to_deposit),
        },
    )
    return RegistrationResult(deposited=to_deposit, addresses=list(staged))
