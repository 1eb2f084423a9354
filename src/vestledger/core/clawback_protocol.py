"""Controller revocation of remaining vesting entitlements."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .address_validation import validate_address
from .schedule_evaluator import clawback_schedules, compute_clawback_available
from .vesting_exceptions import UnauthorizedError
from .vesting_ledger import OperationContext
from .vesting_types import TransferIntent, checked_add

logger = logging.getLogger(__name__)


@dataclass
class ClawbackResult:
    owner: str
    target: str
    clawed_back_amount: int
    transfer: Optional[TransferIntent] = None

    @property
    def attributes(self) -> List[tuple]:
        return [
            ("action", "clawback"),
            ("address", self.owner),
            ("target", self.target),
            ("claimed_amount", str(self.clawed_back_amount)),
        ]


def clawback(ctx: OperationContext, caller: str, target: str) -> ClawbackResult:
    """
    Revoke everything ``target`` has not been paid yet and send it to the owner.

    The amount counts as released on the target's record and the covered
    schedules are marked settled, so the target can never claim it
    afterwards while schedules that have not started yet keep vesting.

    Raises:
        UnauthorizedError: If the caller is not the owner, or the target's
            record is marked non-revocable
        NotFoundError: If the target has no vesting record
    """
    config = ctx.store.load_config()

    # Permission check
    if caller != config.owner:
        raise UnauthorizedError()

    target = validate_address(target)
    info = ctx.store.load_vesting_info(target)

    if not info.clawbackable.permits_clawback:
        raise UnauthorizedError(
            f"Vesting record of {target} is not clawbackable",
            details={"address": target},
        )

    amount = compute_clawback_available(ctx.now, info)
    result = ClawbackResult(owner=caller, target=target, clawed_back_amount=amount)

    if amount:
        info.released_amount = checked_add(info.released_amount, amount)
        info.settled_schedules = clawback_schedules(ctx.now, info)
        ctx.store.save_vesting_info(target, info)
        result.transfer = TransferIntent(
            token_addr=config.token_addr,
            recipient=caller,
            amount=amount,
        )

    logger.info(
        "Vesting clawback of %s",
        target,
        extra={
            "event": "vesting.clawback",
            "owner": caller,
            "target": target,
            "amount": str(amount),
        },
    )
    return result
