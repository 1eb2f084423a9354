"""
vestledger - Clawbackable Vesting Ledger

Tracks linear-release token schedules per beneficiary, lets beneficiaries
claim what has vested, lets the controller claw back revocable grants, and
hands control of the ledger over through a proposal/acceptance handshake.

Main Components:
- Core: schedule evaluation, registration, claim, clawback and ownership protocols
- Database: SQLite-backed persistent store
- CLI: command-line front end
"""

__version__ = "1.0.0"

__all__ = []
