"""Command-line interface for the vesting ledger."""

__all__ = []
