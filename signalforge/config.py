"""
SignalForge - Configuration Module
==================================

Environment-driven engine settings and logging setup.

Settings are read from environment variables prefixed with ``SIGNALFORGE_``
(or a local ``.env`` file), e.g.::

    SIGNALFORGE_INITIAL_CAPITAL=250000
    SIGNALFORGE_ALLOCATION_MODE=fixed_fraction
    SIGNALFORGE_LOG_LEVEL=DEBUG

Author: SignalForge Team
Version: 1.0.0
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from signalforge.enums import AllocationMode, FillMode


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# =============================================================================
# SETTINGS
# =============================================================================

class EngineSettings(BaseSettings):
    """Engine defaults for the pipeline, executor and optimizer."""

    model_config = SettingsConfigDict(
        env_prefix="SIGNALFORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Capital and costs
    initial_capital: float = Field(default=100_000.0, description="Starting cash")
    commission_rate: float = Field(default=0.0, description="Commission as a fraction of notional")

    # Position sizing
    allocation_mode: AllocationMode = Field(
        default=AllocationMode.EQUAL_WEIGHT,
        description="How buy decisions share available cash"
    )
    allocation_fraction: float = Field(
        default=1.0,
        description="Cash fraction per buy in fixed_fraction mode"
    )
    lot_size: int = Field(default=1, description="Minimum tradable quantity")
    fractional_shares: bool = Field(default=False, description="Allow fractional quantities")

    # Execution
    fill_mode: FillMode = Field(default=FillMode.CLOSE, description="Fill price policy")

    # Pipeline
    strict_history: bool = Field(
        default=False,
        description="Raise instead of flagging when an indicator window exceeds history"
    )
    parallel_securities: bool = Field(
        default=False,
        description="Compute indicators/signals for each security on a thread pool"
    )
    max_workers: int = Field(default=4, description="Thread pool size")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_trades: bool = Field(default=False, description="Log every executed trade")

    @field_validator("initial_capital")
    @classmethod
    def validate_capital(cls, v: float) -> float:
        """Starting capital must be positive."""
        if v <= 0:
            raise ValueError("initial_capital must be positive")
        return v

    @field_validator("commission_rate", "allocation_fraction")
    @classmethod
    def validate_rate(cls, v: float) -> float:
        """Rates and fractions must be in 0-1."""
        if not 0 <= v <= 1:
            raise ValueError("value must be between 0 and 1")
        return v

    @field_validator("lot_size", "max_workers")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be >= 1")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {v!r}")
        return level


@lru_cache()
def get_settings() -> EngineSettings:
    """
    Cached settings instance.

    Returns:
        EngineSettings: engine defaults read from the environment
    """
    return EngineSettings()


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging with the engine format.

    Args:
        level: Log level name; defaults to the configured ``log_level``
    """
    logging.basicConfig(
        level=getattr(logging, (level or get_settings().log_level).upper()),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT
    )
