"""
SignalForge - Strategy Container
================================

The aggregate threaded through every pipeline stage.

A container owns the universe's Security Series, the indicator and signal
declarations, the compiled trade decisions, the ledger and the optimization
metadata. Pipeline stages never modify the container they receive: each
returns an updated copy, so a stage that fails leaves its input intact.

Author: SignalForge Team
Version: 1.0.0
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from signalforge.enums import Direction, TradeDecision
from signalforge.exceptions import InsufficientHistoryError, UnknownSecurityError
from signalforge.models.ledger import Ledger


# =============================================================================
# DESCRIPTORS
# =============================================================================

@dataclass(frozen=True)
class IndicatorDescriptor:
    """
    Declared indicator column.

    Attributes:
        name: Output column name
        generator: Registered generator name
        arguments: Arguments the generator was applied with
    """
    name: str
    generator: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "generator": self.generator, "arguments": dict(self.arguments)}


@dataclass(frozen=True)
class SignalDescriptor:
    """
    Declared boolean signal column.

    Attributes:
        name: Output column name
        predicate: Expression text (or the callable's name)
        direction: Trade direction requested when the signal is true
        columns: Columns the predicate reads
    """
    name: str
    predicate: str
    direction: Direction = Direction.BUY
    columns: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "predicate": self.predicate,
            "direction": self.direction.value,
            "columns": list(self.columns)
        }


# =============================================================================
# CONTAINER
# =============================================================================

@dataclass
class StrategyContainer:
    """
    Strategy state: data, declarations, decisions and results.

    Attributes:
        universe: Security identifiers in iteration order
        series: Canonical Security Series per identifier
        indicators: Indicator declarations in application order
        signals: Signal declarations in application order
        compiled_signals: Signal names used by the last compilation
        decisions: Compiled TradeDecision series per identifier
        ledger: Backtest ledger (empty until a backtest runs)
        trial_count: Optimizer trials behind this configuration
        best_parameter: Best parameter value found by the optimizer
        best_objective: Objective value of the best parameter
        warnings: Flagged non-fatal conditions (insufficient history)
    """
    universe: Tuple[str, ...]
    series: Dict[str, pd.DataFrame]
    indicators: Dict[str, IndicatorDescriptor] = field(default_factory=dict)
    signals: Dict[str, SignalDescriptor] = field(default_factory=dict)
    compiled_signals: Tuple[str, ...] = ()
    decisions: Dict[str, pd.Series] = field(default_factory=dict)
    ledger: Ledger = field(default_factory=Ledger)
    trial_count: int = 0
    best_parameter: Any = None
    best_objective: Optional[float] = None
    warnings: List[InsufficientHistoryError] = field(default_factory=list)

    # =========================================================================
    # COPYING
    # =========================================================================

    def copy(self) -> "StrategyContainer":
        """Independent copy; frames and series are copied, descriptors shared."""
        return replace(
            self,
            series={symbol: frame.copy() for symbol, frame in self.series.items()},
            indicators=dict(self.indicators),
            signals=dict(self.signals),
            decisions={symbol: s.copy() for symbol, s in self.decisions.items()},
            ledger=self.ledger.copy(),
            warnings=list(self.warnings)
        )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def is_compiled(self) -> bool:
        """Check if trade decisions exist."""
        return bool(self.decisions)

    @property
    def has_run(self) -> bool:
        """Check if a backtest has populated the ledger."""
        return len(self.ledger) > 0

    @property
    def final_value(self) -> Optional[float]:
        """Final account value of the last backtest."""
        return self.ledger.final_value

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def get_series(self, symbol: str) -> pd.DataFrame:
        """Security Series for ``symbol`` (treat as read-only)."""
        try:
            return self.series[symbol]
        except KeyError:
            raise UnknownSecurityError(symbol=symbol, source="container") from None

    def columns(self, symbol: str) -> List[str]:
        """Column names currently defined for ``symbol``."""
        return list(self.get_series(symbol).columns)

    def symbols_with_column(self, name: str) -> List[str]:
        """Universe members that already have a column called ``name``."""
        return [symbol for symbol in self.universe if name in self.series[symbol].columns]

    def decision_frame(self) -> pd.DataFrame:
        """Compiled decisions as a date x security frame of decision values."""
        if not self.decisions:
            return pd.DataFrame()
        frame = pd.DataFrame(
            {symbol: self.decisions[symbol].map(lambda d: d.value) for symbol in self.universe}
        )
        return frame.fillna(TradeDecision.HOLD.value)

    def summary(self) -> Dict[str, Any]:
        """Short description of the container state."""
        return {
            "universe": list(self.universe),
            "rows": {symbol: len(frame) for symbol, frame in self.series.items()},
            "indicators": [d.to_dict() for d in self.indicators.values()],
            "signals": [d.to_dict() for d in self.signals.values()],
            "compiled_signals": list(self.compiled_signals),
            "ledger_entries": len(self.ledger),
            "final_value": self.final_value,
            "trial_count": self.trial_count,
            "best_parameter": self.best_parameter,
            "best_objective": self.best_objective,
            "warnings": [w.message for w in self.warnings]
        }

    def __repr__(self) -> str:
        return (
            f"<StrategyContainer(universe={list(self.universe)}, "
            f"indicators={list(self.indicators)}, signals={list(self.signals)}, "
            f"ledger={len(self.ledger)})>"
        )
