"""
nftledger configuration

All settings are read from environment variables when the module is
imported. ``LedgerSettings.from_env()`` snapshots them for injection into
a ledger instance.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_int(env_var: str, default: int, minimum: int, maximum: int | None = None) -> int:
    """Read a bounded integer setting from the environment."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc
    if value < minimum or (maximum is not None and value > maximum):
        upper = "" if maximum is None else f"..{maximum}"
        raise ConfigurationError(f"{env_var}={value} outside allowed range {minimum}{upper}")
    return value


def _get_log_level(env_var: str, default: str) -> str:
    level = os.getenv(env_var, default).strip().upper() or default
    if level not in VALID_LOG_LEVELS:
        logger.warning(
            "Invalid %s=%s, falling back to %s",
            env_var,
            level,
            default,
            extra={"event": "config.invalid_log_level", "env_var": env_var},
        )
        return default
    return level


# Supply cap per collection (0 = unlimited)
MAX_SUPPLY = _get_int("NFTLEDGER_MAX_SUPPLY", 0, minimum=0)

# Width of the per-account balance counter; 32 matches the u32 counter of PSP34
BALANCE_BITS = _get_int("NFTLEDGER_BALANCE_BITS", 32, minimum=8, maximum=256)

LOG_LEVEL = _get_log_level("NFTLEDGER_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("NFTLEDGER_LOG_FILE", "").strip() or None
ENVIRONMENT = os.getenv("NFTLEDGER_ENVIRONMENT", "production").strip() or "production"

METRICS_ENABLED = os.getenv("NFTLEDGER_METRICS_ENABLED", "0").strip() == "1"

# Committed events retained on each ledger (0 = keep none)
EVENT_LOG_SIZE = _get_int("NFTLEDGER_EVENT_LOG_SIZE", 10_000, minimum=0)


@dataclass(frozen=True)
class LedgerSettings:
    """Per-ledger settings snapshot."""

    max_supply: int = 0
    balance_bits: int = 32
    metrics_enabled: bool = False
    event_log_size: int = 10_000

    def __post_init__(self) -> None:
        if self.max_supply < 0:
            raise ConfigurationError(f"max_supply must be >= 0, got {self.max_supply}")
        if not 8 <= self.balance_bits <= 256:
            raise ConfigurationError(
                f"balance_bits must be within 8..256, got {self.balance_bits}"
            )
        if self.event_log_size < 0:
            raise ConfigurationError(
                f"event_log_size must be >= 0, got {self.event_log_size}"
            )

    @property
    def max_balance(self) -> int:
        return 2**self.balance_bits - 1

    @classmethod
    def from_env(cls) -> "LedgerSettings":
        return cls(
            max_supply=MAX_SUPPLY,
            balance_bits=BALANCE_BITS,
            metrics_enabled=METRICS_ENABLED,
            event_log_size=EVENT_LOG_SIZE,
        )
