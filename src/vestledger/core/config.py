"""
Vesting ledger configuration

Runtime settings come from environment variables. Protocol constants are
fixed and never read from the environment.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc


def _get_flag(env_var: str, default: bool = False) -> bool:
    return bool(_get_int(env_var, int(default)))


# Protocol constants
CONTRACT_NAME = "clawbackable-vesting"
CONTRACT_VERSION = "1.0.0"
MAX_PROPOSAL_TTL = 1_209_600  # 14 days
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 30
UINT128_MAX = 2**128 - 1

# Runtime settings
DB_PATH = os.getenv(
    "VESTLEDGER_DB_PATH", os.path.join(os.getcwd(), "data", "vesting.db")
)
LOG_LEVEL = os.getenv("VESTLEDGER_LOG_LEVEL", "INFO").strip().upper()
JSON_LOGS = _get_flag("VESTLEDGER_JSON_LOGS")
