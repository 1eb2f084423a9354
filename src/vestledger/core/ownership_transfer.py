"""
Two-step ownership handover.

The owner proposes a successor with a bounded time-to-live; the successor
must accept before it expires. A pending proposal is replaced by a newer
one and removed on acceptance or when the owner drops it. An expired
proposal stays in storage until one of those happens.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from .address_validation import validate_address
from .config import MAX_PROPOSAL_TTL
from .vesting_exceptions import (
    ExpiredError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from .vesting_ledger import OperationContext
from .vesting_types import OwnershipProposal, checked_add

logger = logging.getLogger(__name__)


@dataclass
class OwnershipResult:
    action: str
    new_owner: str | None = None

    @property
    def attributes(self) -> List[tuple]:
        attrs = [("action", self.action)]
        if self.new_owner is not None:
            attrs.append(("new_owner", self.new_owner))
        return attrs


def _require_owner(ctx: OperationContext, caller: str) -> str:
    config = ctx.store.load_config()
    if caller != config.owner:
        raise UnauthorizedError()
    return config.owner


def propose_new_owner(
    ctx: OperationContext, caller: str, new_owner: str, expires_in: int
) -> OwnershipResult:
    """
    Offer ownership to ``new_owner`` for ``expires_in`` seconds.

    Raises:
        UnauthorizedError: If the caller is not the current owner
        InvalidInputError: If ``new_owner`` is the current owner or
            ``expires_in`` is negative or above ``MAX_PROPOSAL_TTL``
    """
    current_owner = _require_owner(ctx, caller)
    new_owner = validate_address(new_owner)

    if new_owner == current_owner:
        raise InvalidInputError("New owner cannot be same")

    if isinstance(expires_in, bool) or not isinstance(expires_in, int) or expires_in < 0:
        raise InvalidInputError("Parameter expires_in must be a non-negative integer")

    if expires_in > MAX_PROPOSAL_TTL:
        raise InvalidInputError(
            f"Parameter expires_in cannot be higher than {MAX_PROPOSAL_TTL}"
        )

    proposal = OwnershipProposal(owner=new_owner, ttl=checked_add(ctx.now, expires_in))
    ctx.store.save_proposal(proposal)

    logger.info(
        "Ownership proposed to %s",
        new_owner,
        extra={"event": "vesting.ownership_proposed", "new_owner": new_owner, "ttl": proposal.ttl},
    )
    return OwnershipResult(action="propose_new_owner", new_owner=new_owner)


def drop_ownership_proposal(ctx: OperationContext, caller: str) -> OwnershipResult:
    """Remove any pending proposal. Only the current owner may do this."""
    _require_owner(ctx, caller)
    ctx.store.remove_proposal()

    logger.info("Ownership proposal dropped", extra={"event": "vesting.ownership_dropped"})
    return OwnershipResult(action="drop_ownership_proposal")


def claim_ownership(ctx: OperationContext, caller: str) -> OwnershipResult:
    """
    Accept a pending proposal and become the owner.

    Raises:
        NotFoundError: If there is no pending proposal
        UnauthorizedError: If the caller is not the proposed owner
        ExpiredError: If the proposal's TTL has passed
    """
    proposal = ctx.store.may_load_proposal()
    if proposal is None:
        raise NotFoundError("Ownership proposal not found")

    if caller != proposal.owner:
        raise UnauthorizedError()

    if proposal.is_expired(ctx.now):
        raise ExpiredError(
            "Ownership proposal expired", details={"ttl": proposal.ttl, "now": ctx.now}
        )

    config = ctx.store.load_config()
    config.owner = proposal.owner
    ctx.store.remove_proposal()
    ctx.store.save_config(config)

    logger.info(
        "Ownership claimed by %s",
        proposal.owner,
        extra={"event": "vesting.ownership_claimed", "new_owner": proposal.owner},
    )
    return OwnershipResult(action="claim_ownership", new_owner=proposal.owner)
