"""Beneficiary claims against vested balances."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .address_validation import validate_optional_address
from .schedule_evaluator import compute_available
from .vesting_exceptions import AmountNotAvailableError
from .vesting_ledger import OperationContext
from .vesting_types import TransferIntent, checked_add, parse_amount

logger = logging.getLogger(__name__)


@dataclass
class ClaimResult:
    address: str
    available_amount: int
    claimed_amount: int
    transfer: Optional[TransferIntent] = None

    @property
    def attributes(self) -> List[tuple]:
        return [
            ("action", "claim"),
            ("address", self.address),
            ("available_amount", str(self.available_amount)),
            ("claimed_amount", str(self.claimed_amount)),
        ]


def claim(
    ctx: OperationContext,
    caller: str,
    recipient: Optional[str] = None,
    amount: Optional[int] = None,
) -> ClaimResult:
    """
    Release vested tokens to the caller or to ``recipient``.

    Args:
        ctx: Operation context
        caller: Beneficiary account claiming its own tokens
        recipient: Transfer destination, defaults to ``caller``
        amount: Exact amount to claim, defaults to everything available

    Returns:
        ClaimResult; ``transfer`` is None when nothing was claimed

    Raises:
        NotFoundError: If the caller has no vesting record
        AmountNotAvailableError: If ``amount`` exceeds the available balance
    """
    config = ctx.store.load_config()
    info = ctx.store.load_vesting_info(caller)

    recipient = validate_optional_address(recipient)
    if amount is not None:
        amount = parse_amount(amount)

    available_amount = compute_available(ctx.now, info)

    if amount is not None:
        if amount > available_amount:
            raise AmountNotAvailableError(
                details={"requested": str(amount), "available": str(available_amount)}
            )
        claim_amount = amount
    else:
        claim_amount = available_amount

    result = ClaimResult(
        address=caller,
        available_amount=available_amount,
        claimed_amount=claim_amount,
    )

    if claim_amount:
        info.released_amount = checked_add(info.released_amount, claim_amount)
        ctx.store.save_vesting_info(caller, info)
        result.transfer = TransferIntent(
            token_addr=config.token_addr,
            recipient=recipient or caller,
            amount=claim_amount,
        )

    logger.info(
        "Vesting claim by %s",
        caller,
        extra={
            "event": "vesting.claim",
            "address": caller,
            "available_amount": str(available_amount),
            "claimed_amount": str(claim_amount),
        },
    )
    return result
