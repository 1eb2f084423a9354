"""
Address validation for ledger identities.

The ledger keys records by address string, so two spellings of one account
would produce two records. Only canonical (lowercase) addresses are accepted.
"""

from __future__ import annotations

import re

from .vesting_exceptions import InvalidAddressError

_ADDRESS_PATTERN = re.compile(r"^[0-9a-z_\-]{3,128}$")


def validate_address(address: str) -> str:
    """
    Validate an externally supplied address and return it unchanged.

    Args:
        address: Address string

    Returns:
        The validated address

    Raises:
        InvalidAddressError: If the address is empty, not lowercase or malformed
    """
    if not isinstance(address, str) or not address:
        raise InvalidAddressError("Address cannot be empty")
    if address.lower() != address:
        raise InvalidAddressError(f"Address {address} should be lowercase")
    if not _ADDRESS_PATTERN.match(address):
        raise InvalidAddressError(f"Invalid address format: {address}")
    return address


def validate_optional_address(address: str | None) -> str | None:
    """Validate ``address`` when present."""
    if address is None:
        return None
    return validate_address(address)
