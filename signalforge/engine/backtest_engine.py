"""
SignalForge - Backtest Configuration & State
============================================

Executor configuration and the mutable account state it folds over.

Author: SignalForge Team
Version: 1.0.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from signalforge.config import EngineSettings, get_settings
from signalforge.enums import AllocationMode, FillMode
from signalforge.exceptions import InvalidConfigError
from signalforge.models.ledger import LedgerEntry, Position, TradeEvent

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class BacktestConfig:
    """
    Backtest configuration.

    Attributes:
        initial_capital: Starting cash
        commission_rate: Commission as a fraction of notional, both sides
        allocation_mode: How buy decisions share cash
        allocation_fraction: Cash fraction per buy (FIXED_FRACTION only)
        lot_size: Quantities are rounded down to multiples of this
        fractional_shares: Skip lot rounding entirely
        fill_mode: Fill at the decision bar's close or the next bar's open
        log_trades: Log every executed trade at INFO
    """
    # Capital
    initial_capital: float = 100_000.0

    # Transaction costs
    commission_rate: float = 0.0

    # Position sizing
    allocation_mode: AllocationMode = AllocationMode.EQUAL_WEIGHT
    allocation_fraction: float = 1.0
    lot_size: int = 1
    fractional_shares: bool = False

    # Execution
    fill_mode: FillMode = FillMode.CLOSE

    # Logging
    log_trades: bool = False

    def __post_init__(self):
        self.allocation_mode = AllocationMode(self.allocation_mode)
        self.fill_mode = FillMode(self.fill_mode)

    @classmethod
    def from_settings(cls, settings: Optional[EngineSettings] = None) -> "BacktestConfig":
        """Build a config from environment settings."""
        settings = settings or get_settings()
        return cls(
            initial_capital=settings.initial_capital,
            commission_rate=settings.commission_rate,
            allocation_mode=settings.allocation_mode,
            allocation_fraction=settings.allocation_fraction,
            lot_size=settings.lot_size,
            fractional_shares=settings.fractional_shares,
            fill_mode=settings.fill_mode,
            log_trades=settings.log_trades
        )

    def validate(self) -> None:
        """Validate configuration."""
        if self.initial_capital <= 0:
            raise InvalidConfigError("initial_capital", self.initial_capital, "a positive amount")
        if not 0 <= self.commission_rate <= 1:
            raise InvalidConfigError("commission_rate", self.commission_rate, "0 <= rate <= 1")
        if not 0 < self.allocation_fraction <= 1:
            raise InvalidConfigError("allocation_fraction", self.allocation_fraction, "0 < fraction <= 1")
        if self.lot_size < 1:
            raise InvalidConfigError("lot_size", self.lot_size, ">= 1")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "initial_capital": self.initial_capital,
            "commission_rate": self.commission_rate,
            "allocation_mode": self.allocation_mode.value,
            "allocation_fraction": self.allocation_fraction,
            "lot_size": self.lot_size,
            "fractional_shares": self.fractional_shares,
            "fill_mode": self.fill_mode.value,
            "log_trades": self.log_trades
        }


# =============================================================================
# EXECUTION STATE
# =============================================================================

@dataclass
class ExecutionState:
    """
    Account state while the executor walks the calendar.

    Tracks cash, one Position per universe member and the trades executed on
    the current date.
    """
    cash: float = 0.0
    positions: Dict[str, Position] = field(default_factory=dict)
    trades_today: List[TradeEvent] = field(default_factory=list)

    def reset(self, initial_capital: float, universe: Iterable[str]) -> None:
        """Reset state for a new backtest."""
        self.cash = initial_capital
        self.positions = {symbol: Position(symbol) for symbol in universe}
        self.trades_today = []

    def account_value(self, marks: Dict[str, float]) -> float:
        """Cash plus positions marked at ``marks``."""
        return self.cash + sum(
            position.market_value(marks[symbol])
            for symbol, position in self.positions.items()
            if not position.is_flat
        )

    def settle(self, date: pd.Timestamp, marks: Dict[str, float]) -> LedgerEntry:
        """Close the date: build its ledger entry and clear today's trades."""
        entry = LedgerEntry(
            date=date,
            cash=self.cash,
            positions={symbol: position.quantity for symbol, position in self.positions.items()},
            value=self.account_value(marks),
            trades=tuple(self.trades_today),
            avg_costs={symbol: position.avg_cost for symbol, position in self.positions.items()}
        )
        self.trades_today = []
        return entry
