"""
Unit tests for deposit registration and schedule merging.
"""

import pytest

from vestledger.core.account_registrar import register_vesting_accounts
from vestledger.core.claim_protocol import claim
from vestledger.core.clawback_protocol import clawback
from vestledger.core.schedule_evaluator import compute_available
from vestledger.core.vesting_exceptions import (
    DepositMismatchError,
    InvalidAddressError,
    ScheduleInvalidError,
)
from vestledger.core.vesting_types import Clawbackable


def test_registers_new_account(ledger):
    schedule = ledger.linear(1000, 0, 2000, 1000)
    result = register_vesting_accounts(
        ledger.at(500), [ledger.account("alice", schedule, clawbackable=True)], 1000
    )

    assert result.deposited == 1000
    assert result.addresses == ["alice"]
    assert ("action", "register_vesting_accounts") in result.attributes

    info = ledger.store.load_vesting_info("alice")
    assert info.schedules == [schedule]
    assert info.released_amount == 0
    assert info.clawbackable is Clawbackable.ALLOWED


def test_deposit_sums_maximal_schedule_amounts(ledger):
    accounts = [
        ledger.account("alice", ledger.linear(1000, 100, 2000, 1000), ledger.cliff(3000, 50)),
        ledger.account("bob", ledger.cliff(1000, 25)),
    ]
    result = register_vesting_accounts(ledger.at(0), accounts, 1075)
    assert result.deposited == 1075


def test_repeat_deposit_appends_and_keeps_released_amount(ledger):
    first = ledger.linear(1000, 0, 2000, 1000)
    second = ledger.cliff(5000, 300)
    register_vesting_accounts(ledger.at(0), [ledger.account("alice", first)], 1000)
    claim(ledger.at(1500), "alice")

    register_vesting_accounts(
        ledger.at(1600), [ledger.account("alice", second, clawbackable=False)], 300
    )

    info = ledger.store.load_vesting_info("alice")
    assert info.schedules == [first, second]
    assert info.released_amount == 500
    assert info.clawbackable is Clawbackable.DENIED


def test_duplicate_address_in_batch_merges_in_order(ledger):
    first = ledger.cliff(100, 10)
    second = ledger.cliff(200, 20)
    register_vesting_accounts(
        ledger.at(0),
        [ledger.account("alice", first), ledger.account("alice", second)],
        30,
    )
    assert ledger.store.load_vesting_info("alice").schedules == [first, second]


def test_amount_mismatch_rejects_whole_batch(ledger):
    original = ledger.cliff(100, 10)
    register_vesting_accounts(ledger.at(0), [ledger.account("alice", original)], 10)

    with pytest.raises(DepositMismatchError) as exc_info:
        register_vesting_accounts(
            ledger.at(0),
            [
                ledger.account("alice", ledger.cliff(200, 5)),
                ledger.account("bob", ledger.cliff(200, 5)),
            ],
            11,
        )

    assert exc_info.value.expected == 10
    assert exc_info.value.received == 11
    assert ledger.store.load_vesting_info("alice").schedules == [original]
    assert ledger.store.may_load_vesting_info("bob") is None


def test_invalid_schedule_names_offending_address(ledger):
    with pytest.raises(ScheduleInvalidError) as exc_info:
        register_vesting_accounts(
            ledger.at(0),
            [
                ledger.account("alice", ledger.cliff(100, 10)),
                ledger.account("bob", ledger.linear(200, 50, 100, 100)),
            ],
            110,
        )

    assert exc_info.value.address == "bob"
    assert ledger.store.may_load_vesting_info("alice") is None


def test_equal_start_and_end_amounts_are_invalid(ledger):
    with pytest.raises(ScheduleInvalidError):
        register_vesting_accounts(
            ledger.at(0), [ledger.account("alice", ledger.linear(100, 10, 200, 10))], 10
        )


def test_rejects_non_canonical_address(ledger):
    with pytest.raises(InvalidAddressError):
        register_vesting_accounts(ledger.at(0), [ledger.account("Alice", ledger.cliff(1, 1))], 1)
    assert ledger.store.may_load_vesting_info("alice") is None


def test_repeat_deposit_keeps_settled_schedules(ledger):
    register_vesting_accounts(
        ledger.at(0), [ledger.account("alice", ledger.linear(1000, 0, 2000, 1000))], 1000
    )
    clawback(ledger.at(1500), ledger.owner, "alice")

    register_vesting_accounts(
        ledger.at(1600), [ledger.account("alice", ledger.cliff(3000, 50))], 50
    )

    info = ledger.store.load_vesting_info("alice")
    assert info.settled_schedules == [0]
    assert compute_available(2000, info) == 0
    assert compute_available(3000, info) == 50
