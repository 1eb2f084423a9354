"""
Vesting ledger storage.

``VestingStore`` is the key-value seam the protocols work against: a
singleton config record, a singleton ownership proposal and an address-keyed
map of ``VestingInfo`` records with ordered range reads. ``MemoryVestingStore``
keeps everything in dictionaries; ``vestledger.database.storage_manager``
provides the SQLite implementation.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import ContextManager, Dict, Iterator, List, Optional, Tuple

from .config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from .vesting_exceptions import NotFoundError
from .vesting_types import LedgerConfig, OwnershipProposal, VestingInfo

logger = logging.getLogger(__name__)


class OrderBy(Enum):
    ASC = "asc"
    DESC = "desc"


class VestingStore(ABC):
    """Backing store for ledger records."""

    # ==================== Config ====================

    @abstractmethod
    def may_load_config(self) -> Optional[LedgerConfig]:
        ...

    @abstractmethod
    def save_config(self, config: LedgerConfig) -> None:
        ...

    def load_config(self) -> LedgerConfig:
        config = self.may_load_config()
        if config is None:
            raise NotFoundError("Ledger config not found; ledger is not instantiated")
        return config

    @abstractmethod
    def may_load_contract_version(self) -> Optional[Tuple[str, str]]:
        ...

    @abstractmethod
    def save_contract_version(self, name: str, version: str) -> None:
        ...

    # ==================== Ownership proposal ====================

    @abstractmethod
    def may_load_proposal(self) -> Optional[OwnershipProposal]:
        ...

    @abstractmethod
    def save_proposal(self, proposal: OwnershipProposal) -> None:
        ...

    @abstractmethod
    def remove_proposal(self) -> None:
        ...

    # ==================== Vesting records ====================

    @abstractmethod
    def may_load_vesting_info(self, address: str) -> Optional[VestingInfo]:
        ...

    @abstractmethod
    def save_vesting_info(self, address: str, info: VestingInfo) -> None:
        ...

    @abstractmethod
    def range_vesting_infos(
        self, start_after: Optional[str], order_by: OrderBy, limit: int
    ) -> List[Tuple[str, VestingInfo]]:
        """
        Ordered page of records.

        ``start_after`` is exclusive and applies in the iteration direction:
        ascending pages return keys greater than it, descending pages keys
        less than it.
        """

    def load_vesting_info(self, address: str) -> VestingInfo:
        info = self.may_load_vesting_info(address)
        if info is None:
            raise NotFoundError(
                f"Vesting info not found for {address}", details={"address": address}
            )
        return info

    # ==================== Transactions ====================

    @abstractmethod
    def transaction(self) -> ContextManager["VestingStore"]:
        """Group writes; every write inside is discarded if the block raises."""


class MemoryVestingStore(VestingStore):
    """Dictionary-backed store. Records are copied in and out."""

    def __init__(self) -> None:
        self._config: Optional[LedgerConfig] = None
        self._proposal: Optional[OwnershipProposal] = None
        self._vesting_info: Dict[str, VestingInfo] = {}
        self._contract_version: Optional[Tuple[str, str]] = None
        self._depth = 0

    def may_load_config(self) -> Optional[LedgerConfig]:
        return copy.deepcopy(self._config)

    def save_config(self, config: LedgerConfig) -> None:
        self._config = copy.deepcopy(config)

    def may_load_contract_version(self) -> Optional[Tuple[str, str]]:
        return self._contract_version

    def save_contract_version(self, name: str, version: str) -> None:
        self._contract_version = (name, version)

    def may_load_proposal(self) -> Optional[OwnershipProposal]:
        return copy.deepcopy(self._proposal)

    def save_proposal(self, proposal: OwnershipProposal) -> None:
        self._proposal = copy.deepcopy(proposal)

    def remove_proposal(self) -> None:
        self._proposal = None

    def may_load_vesting_info(self, address: str) -> Optional[VestingInfo]:
        return copy.deepcopy(self._vesting_info.get(address))

    def save_vesting_info(self, address: str, info: VestingInfo) -> None:
        self._vesting_info[address] = copy.deepcopy(info)

    def range_vesting_infos(
        self, start_after: Optional[str], order_by: OrderBy, limit: int
    ) -> List[Tuple[str, VestingInfo]]:
        descending = order_by is OrderBy.DESC
        keys = sorted(self._vesting_info, reverse=descending)
        if start_after is not None:
            if descending:
                keys = [k for k in keys if k < start_after]
            else:
                keys = [k for k in keys if k > start_after]
        return [(k, copy.deepcopy(self._vesting_info[k])) for k in keys[:limit]]

    @contextmanager
    def transaction(self) -> Iterator["MemoryVestingStore"]:
        if self._depth:
            # Nested blocks join the outer transaction
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        snapshot = (
            copy.deepcopy(self._config),
            copy.deepcopy(self._proposal),
            copy.deepcopy(self._vesting_info),
            self._contract_version,
        )
        self._depth = 1
        try:
            yield self
        except BaseException:
            (
                self._config,
                self._proposal,
                self._vesting_info,
                self._contract_version,
            ) = snapshot
            logger.debug("Rolled back in-memory ledger transaction")
            raise
        finally:
            self._depth = 0


@dataclass(frozen=True)
class OperationContext:
    """Store handle and current time for one ledger operation."""

    store: VestingStore
    now: int


def read_vesting_infos(
    store: VestingStore,
    start_after: Optional[str] = None,
    limit: Optional[int] = None,
    order_by: Optional[OrderBy] = None,
) -> List[Tuple[str, VestingInfo]]:
    """
    Paginated account listing.

    Args:
        store: Backing store
        start_after: Exclusive cursor
        limit: Page size, defaults to 10 and is capped at 30
        order_by: Iteration order, descending when omitted

    Returns:
        List of ``(address, info)`` pairs
    """
    page = DEFAULT_PAGE_LIMIT if limit is None else max(0, min(limit, MAX_PAGE_LIMIT))
    return store.range_vesting_infos(start_after, order_by or OrderBy.DESC, page)
