"""
Clawbackable Vesting Contract.

Front door to the ledger: instantiation, the deposit hook fired by the
settlement token, the execute operations and the read-only queries.

Every execute call receives the caller and the current time explicitly and
runs inside one store transaction, so a failure leaves no partial write.
The contract never moves funds itself; operations that pay out return a
``TransferIntent`` for the token service to settle.

Usage:
    store = MemoryVestingStore()
    contract = VestingContract(store)
    contract.instantiate(owner="owner", token_addr="token")
    contract.receive_deposit(now, "token", "owner", 1000, accounts)
    result = contract.claim(now, "alice")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from . import account_registrar, claim_protocol, clawback_protocol, ownership_transfer
from .address_validation import validate_address, validate_optional_address
from .config import CONTRACT_NAME, CONTRACT_VERSION
from .schedule_evaluator import compute_available
from .vesting_exceptions import UnauthorizedError
from .vesting_ledger import OperationContext, OrderBy, VestingStore, read_vesting_infos
from .vesting_types import (
    LedgerConfig,
    OwnershipProposal,
    VestingAccount,
    parse_amount,
    parse_time,
)

logger = logging.getLogger(__name__)


class VestingContract:
    """
    Vesting ledger with claw-back and two-step ownership transfer.

    Attributes:
        store: Backing store holding config, proposal and vesting records
    """

    def __init__(self, store: VestingStore) -> None:
        self.store = store

    def _context(self, now: int) -> OperationContext:
        return OperationContext(store=self.store, now=parse_time(now, "now"))

    # ==================== Instantiation ====================

    def instantiate(self, owner: str, token_addr: str) -> LedgerConfig:
        """
        Store the initial configuration.

        Args:
            owner: Controller address
            token_addr: Address of the settlement token service

        Returns:
            The stored config
        """
        config = LedgerConfig(
            owner=validate_address(owner),
            token_addr=validate_address(token_addr),
        )
        with self.store.transaction():
            self.store.save_contract_version(CONTRACT_NAME, CONTRACT_VERSION)
            self.store.save_config(config)

        logger.info(
            "Vesting contract instantiated",
            extra={
                "event": "vesting.instantiated",
                "owner": config.owner,
                "token_addr": config.token_addr,
            },
        )
        return config

    # ==================== Execute ====================

    def receive_deposit(
        self,
        now: int,
        token_sender: str,
        depositor: str,
        amount: int,
        vesting_accounts: Sequence[VestingAccount],
    ) -> account_registrar.RegistrationResult:
        """
        Token service hook: register accounts funded by a deposit.

        Args:
            now: Current time
            token_sender: Address of the service that delivered the funds
            depositor: Account that sent the funds
            amount: Amount delivered
            vesting_accounts: Accounts to fund

        Raises:
            UnauthorizedError: If the funds did not come from the configured
                token service or the depositor is not the owner
        """
        ctx = self._context(now)
        amount = parse_amount(amount)
        with self.store.transaction():
            config = self.store.load_config()
            if depositor != config.owner or token_sender != config.token_addr:
                raise UnauthorizedError(
                    details={"depositor": depositor, "token_sender": token_sender}
                )
            return account_registrar.register_vesting_accounts(ctx, vesting_accounts, amount)

    def claim(
        self,
        now: int,
        caller: str,
        recipient: Optional[str] = None,
        amount: Optional[int] = None,
    ) -> claim_protocol.ClaimResult:
        ctx = self._context(now)
        with self.store.transaction():
            return claim_protocol.claim(ctx, caller, recipient, amount)

    def clawback(self, now: int, caller: str, target: str) -> clawback_protocol.ClawbackResult:
        ctx = self._context(now)
        with self.store.transaction():
            return clawback_protocol.clawback(ctx, caller, target)

    def propose_new_owner(
        self, now: int, caller: str, new_owner: str, expires_in: int
    ) -> ownership_transfer.OwnershipResult:
        ctx = self._context(now)
        with self.store.transaction():
            return ownership_transfer.propose_new_owner(ctx, caller, new_owner, expires_in)

    def drop_ownership_proposal(
        self, now: int, caller: str
    ) -> ownership_transfer.OwnershipResult:
        ctx = self._context(now)
        with self.store.transaction():
            return ownership_transfer.drop_ownership_proposal(ctx, caller)

    def claim_ownership(self, now: int, caller: str) -> ownership_transfer.OwnershipResult:
        ctx = self._context(now)
        with self.store.transaction():
            return ownership_transfer.claim_ownership(ctx, caller)

    # ==================== Queries ====================

    def query_config(self) -> Dict[str, Any]:
        return self.store.load_config().to_dict()

    def query_contract_version(self) -> Optional[Dict[str, str]]:
        stored = self.store.may_load_contract_version()
        if stored is None:
            return None
        name, version = stored
        return {"contract": name, "version": version}

    def query_timestamp(self, now: int) -> int:
        return parse_time(now, "now")

    def query_vesting_account(self, address: str) -> Dict[str, Any]:
        address = validate_address(address)
        info = self.store.load_vesting_info(address)
        return {"address": address, "info": info.to_dict()}

    def query_vesting_accounts(
        self,
        start_after: Optional[str] = None,
        limit: Optional[int] = None,
        order_by: Optional[OrderBy] = None,
    ) -> List[Dict[str, Any]]:
        start_after = validate_optional_address(start_after)
        return [
            {"address": address, "info": info.to_dict()}
            for address, info in read_vesting_infos(self.store, start_after, limit, order_by)
        ]

    def query_available_amount(self, now: int, address: str) -> int:
        address = validate_address(address)
        info = self.store.load_vesting_info(address)
        return compute_available(parse_time(now, "now"), info)

    def query_ownership_proposal(self) -> Optional[OwnershipProposal]:
        return self.store.may_load_proposal()
