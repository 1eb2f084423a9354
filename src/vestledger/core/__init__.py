"""
vestledger Core Module

Vesting arithmetic, ledger records and the state-transition protocols that
mutate them. Nothing in this package reads a clock or moves funds.
"""

__all__ = []
