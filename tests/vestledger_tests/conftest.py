import pytest

from vestledger.core.vesting_contract import VestingContract
from vestledger.core.vesting_ledger import MemoryVestingStore, OperationContext
from vestledger.core.vesting_types import (
    Clawbackable,
    SchedulePoint,
    VestingAccount,
    VestingSchedule,
)

OWNER = "owner"
TOKEN = "token"


class LedgerHarness:
    """Instantiated in-memory ledger plus schedule builders."""

    owner = OWNER
    token = TOKEN

    def __init__(self):
        self.store = MemoryVestingStore()
        self.contract = VestingContract(self.store)
        self.contract.instantiate(owner=OWNER, token_addr=TOKEN)

    @staticmethod
    def linear(start_time, start_amount, end_time, end_amount):
        return VestingSchedule(
            start_point=SchedulePoint(time=start_time, amount=start_amount),
            end_point=SchedulePoint(time=end_time, amount=end_amount),
        )

    @staticmethod
    def cliff(time, amount):
        return VestingSchedule(start_point=SchedulePoint(time=time, amount=amount))

    @staticmethod
    def account(address, *schedules, clawbackable=None):
        return VestingAccount(
            address=address,
            schedules=list(schedules),
            clawbackable=Clawbackable.from_flag(clawbackable),
        )

    def at(self, now):
        return OperationContext(store=self.store, now=now)

    def deposit(self, now, accounts, amount=None):
        if amount is None:
            amount = sum(s.total_amount for a in accounts for s in a.schedules)
        return self.contract.receive_deposit(now, TOKEN, OWNER, amount, accounts)


@pytest.fixture
def ledger():
    return LedgerHarness()


@pytest.fixture
def store(ledger):
    return ledger.store
