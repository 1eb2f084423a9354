"""Persistent storage backends for the vesting ledger."""

__all__ = []
