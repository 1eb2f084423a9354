# src/vestledger/database/storage_manager.py
from __future__ import annotations

"""
Persistent vesting ledger store backed by SQLite.

Singleton records (config, ownership proposal, contract version) live in a
key/value table; vesting records live in their own table keyed by address so
the account listing can page through them in key order. Values are
serialized to JSON.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Tuple

from vestledger.core.vesting_exceptions import StorageError, VestingError
from vestledger.core.vesting_ledger import OrderBy, VestingStore
from vestledger.core.vesting_types import LedgerConfig, OwnershipProposal, VestingInfo

logger = logging.getLogger(__name__)

CONFIG_KEY = "config"
PROPOSAL_KEY = "ownership_proposal"
CONTRACT_VERSION_KEY = "contract_info"


class SqliteVestingStore(VestingStore):
    """
    Manages the vesting ledger in a SQLite database.

    Statements outside ``transaction()`` commit immediately; inside it they
    are grouped and rolled back together if the block raises.
    """

    def __init__(self, db_path: Path | str):
        """
        Open (and create if needed) the database.

        Args:
            db_path: Path to the SQLite database file, or ``":memory:"``. The
                parent directory is created if it does not exist.
        """
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._depth = 0

        try:
            self._conn = sqlite3.connect(
                str(self.db_path), check_same_thread=False, isolation_level=None
            )
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
            self._create_tables()
        except sqlite3.Error as e:
            logger.error("Database connection failed: %s", e)
            raise StorageError(f"Database connection failed: {e}") from e

    def _create_tables(self) -> None:
        """
        Creates the key_value_store and vesting_info tables if they do not exist.
        """
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS key_value_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS vesting_info (
                address TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )

    # ==================== Low-level helpers ====================

    def _set(self, key: str, value: Any) -> None:
        try:
            self._conn.execute(
                """
                INSERT INTO key_value_store (key, value)
                VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, json.dumps(value)),
            )
        except sqlite3.Error as e:
            logger.error("Failed to set key '%s': %s", key, e)
            raise StorageError(f"Failed to set key '{key}': {e}") from e

    def _get(self, key: str) -> Any | None:
        try:
            row = self._conn.execute(
                "SELECT value FROM key_value_store WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Failed to get key '%s': %s", key, e)
            raise StorageError(f"Failed to get key '{key}': {e}") from e
        return self._decode(row[0], key) if row else None

    def _delete(self, key: str) -> None:
        try:
            self._conn.execute("DELETE FROM key_value_store WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete key '{key}': {e}") from e

    @staticmethod
    def _decode(raw: str, key: str) -> Any:
        try:
            return json.loads(raw)
        except ValueError as e:
            raise StorageError(f"Corrupted record for '{key}': {e}") from e

    def _decode_info(self, raw: str, address: str) -> VestingInfo:
        data = self._decode(raw, address)
        try:
            return VestingInfo.from_dict(data)
        except (VestingError, KeyError, TypeError) as e:
            raise StorageError(f"Corrupted vesting record for '{address}': {e}") from e

    def _load_singleton(self, key: str, parse: Callable[[Any], Any]) -> Any | None:
        data = self._get(key)
        if data is None:
            return None
        try:
            return parse(data)
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Corrupted record for '{key}': {e}") from e

    # ==================== VestingStore ====================

    def may_load_config(self) -> Optional[LedgerConfig]:
        return self._load_singleton(CONFIG_KEY, LedgerConfig.from_dict)

    def save_config(self, config: LedgerConfig) -> None:
        self._set(CONFIG_KEY, config.to_dict())

    def may_load_contract_version(self) -> Optional[Tuple[str, str]]:
        return self._load_singleton(
            CONTRACT_VERSION_KEY, lambda data: (data["contract"], data["version"])
        )

    def save_contract_version(self, name: str, version: str) -> None:
        self._set(CONTRACT_VERSION_KEY, {"contract": name, "version": version})

    def may_load_proposal(self) -> Optional[OwnershipProposal]:
        return self._load_singleton(PROPOSAL_KEY, OwnershipProposal.from_dict)

    def save_proposal(self, proposal: OwnershipProposal) -> None:
        self._set(PROPOSAL_KEY, proposal.to_dict())

    def remove_proposal(self) -> None:
        self._delete(PROPOSAL_KEY)

    def may_load_vesting_info(self, address: str) -> Optional[VestingInfo]:
        try:
            row = self._conn.execute(
                "SELECT value FROM vesting_info WHERE address = ?", (address,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to load vesting info for '{address}': {e}") from e
        return self._decode_info(row[0], address) if row else None

    def save_vesting_info(self, address: str, info: VestingInfo) -> None:
        try:
            self._conn.execute(
                """
                INSERT INTO vesting_info (address, value)
                VALUES (?, ?)
                ON CONFLICT(address) DO UPDATE SET value = excluded.value
                """,
                (address, json.dumps(info.to_dict())),
            )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to save vesting info for '{address}': {e}") from e

    def range_vesting_infos(
        self, start_after: Optional[str], order_by: OrderBy, limit: int
    ) -> List[Tuple[str, VestingInfo]]:
        if order_by is OrderBy.ASC:
            comparison, direction = ">", "ASC"
        else:
            comparison, direction = "<", "DESC"

        query = "SELECT address, value FROM vesting_info"
        params: list = []
        if start_after is not None:
            query += f" WHERE address {comparison} ?"
            params.append(start_after)
        query += f" ORDER BY address {direction} LIMIT ?"
        params.append(limit)

        try:
            rows = self._conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to range vesting info: {e}") from e
        return [(address, self._decode_info(raw, address)) for address, raw in rows]

    @contextmanager
    def transaction(self) -> Iterator["SqliteVestingStore"]:
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._conn.execute("BEGIN IMMEDIATE")
        self._depth = 1
        try:
            yield self
        except BaseException:
            self._conn.execute("ROLLBACK")
            logger.debug("Rolled back ledger transaction on %s", self.db_path)
            raise
        else:
            self._conn.execute("COMMIT")
        finally:
            self._depth = 0

    # ==================== Lifecycle ====================

    def close(self) -> None:
        """
        Closes the database connection.
        """
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "SqliteVestingStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
