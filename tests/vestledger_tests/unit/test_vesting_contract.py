"""
Unit tests for the contract facade: deposit hook, transactions and queries.
"""

from unittest.mock import patch

import pytest

from vestledger.core import claim_protocol
from vestledger.core.config import CONTRACT_NAME
from vestledger.core.vesting_contract import VestingContract
from vestledger.core.vesting_exceptions import (
    InvalidAddressError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from vestledger.core.vesting_ledger import MemoryVestingStore, OrderBy


def test_instantiate_validates_addresses():
    contract = VestingContract(MemoryVestingStore())
    with pytest.raises(InvalidAddressError):
        contract.instantiate(owner="Owner", token_addr="token")
    with pytest.raises(NotFoundError):
        contract.query_config()


def test_instantiate_records_config_and_version(ledger):
    assert ledger.contract.query_config() == {"owner": "owner", "token_addr": "token"}
    assert ledger.contract.query_contract_version()["contract"] == CONTRACT_NAME


@pytest.mark.parametrize(
    "token_sender, depositor",
    [("token", "mallory"), ("fake_token", "owner"), ("owner", "token")],
)
def test_deposit_hook_requires_token_and_owner(ledger, token_sender, depositor):
    accounts = [ledger.account("alice", ledger.cliff(10, 100))]
    with pytest.raises(UnauthorizedError):
        ledger.contract.receive_deposit(0, token_sender, depositor, 100, accounts)
    assert ledger.store.may_load_vesting_info("alice") is None


def test_failed_operation_leaves_no_partial_write(ledger):
    ledger.deposit(0, [ledger.account("alice", ledger.linear(1000, 0, 2000, 1000))])

    def explode(*args, **kwargs):
        raise RuntimeError("settlement rejected")

    with patch.object(claim_protocol, "TransferIntent", side_effect=explode):
        with pytest.raises(RuntimeError):
            ledger.contract.claim(1500, "alice")

    assert ledger.store.load_vesting_info("alice").released_amount == 0


def test_rejects_invalid_time(ledger):
    with pytest.raises(InvalidInputError):
        ledger.contract.claim(-1, "alice")
    with pytest.raises(InvalidInputError):
        ledger.contract.query_timestamp(1.5)


def test_queries(ledger):
    ledger.deposit(
        0,
        [
            ledger.account("alice", ledger.linear(1000, 0, 2000, 1000), clawbackable=False),
            ledger.account("bob", ledger.cliff(1200, 300)),
        ],
    )
    ledger.contract.claim(1500, "alice", amount=100)

    account = ledger.contract.query_vesting_account("alice")
    assert account["address"] == "alice"
    assert account["info"]["released_amount"] == "100"
    assert account["info"]["clawbackable"] is False

    assert ledger.contract.query_available_amount(1500, "alice") == 400
    assert ledger.contract.query_available_amount(1500, "bob") == 300
    assert ledger.contract.query_timestamp(1234) == 1234

    listed = ledger.contract.query_vesting_accounts(order_by=OrderBy.ASC)
    assert [entry["address"] for entry in listed] == ["alice", "bob"]
    listed = ledger.contract.query_vesting_accounts(start_after="bob")
    assert [entry["address"] for entry in listed] == ["alice"]

    with pytest.raises(InvalidAddressError):
        ledger.contract.query_vesting_account("Alice")
    with pytest.raises(NotFoundError):
        ledger.contract.query_available_amount(0, "carol")


def test_ownership_flow_through_contract(ledger):
    assert ledger.contract.query_ownership_proposal() is None
    ledger.contract.propose_new_owner(100, ledger.owner, "successor", 100)
    assert ledger.contract.query_ownership_proposal().ttl == 200

    ledger.contract.drop_ownership_proposal(110, ledger.owner)
    assert ledger.contract.query_ownership_proposal() is None

    ledger.contract.propose_new_owner(120, ledger.owner, "successor", 100)
    ledger.contract.claim_ownership(150, "successor")
    assert ledger.contract.query_config()["owner"] == "successor"


def test_clawback_through_contract(ledger):
    ledger.deposit(0, [ledger.account("alice", ledger.cliff(10, 100), clawbackable=True)])
    result = ledger.contract.clawback(20, ledger.owner, "alice")
    assert result.transfer.amount == 100
    assert ledger.contract.query_available_amount(30, "alice") == 0


def test_target_can_poll_after_mid_vesting_clawback(ledger):
    ledger.deposit(0, [ledger.account("alice", ledger.linear(1000, 0, 2000, 1000))])
    ledger.contract.clawback(1500, ledger.owner, "alice")

    result = ledger.contract.claim(1600, "alice")
    assert result.claimed_amount == 0
    assert result.transfer is None
    assert ledger.contract.query_available_amount(1600, "alice") == 0
    assert ledger.contract.query_vesting_account("alice")["info"]["settled_schedules"] == [0]
