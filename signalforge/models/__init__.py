"""
SignalForge - Models
====================

Data models for the strategy pipeline.

Exports:
    - StrategyContainer, IndicatorDescriptor, SignalDescriptor
    - Position, TradeEvent, LedgerEntry, Ledger
    - TrialResult, TrialFailure, OptimizationResult
"""

from signalforge.models.container import (
    StrategyContainer,
    IndicatorDescriptor,
    SignalDescriptor
)

from signalforge.models.ledger import (
    Position,
    TradeEvent,
    LedgerEntry,
    Ledger
)

from signalforge.models.optimization import (
    TrialResult,
    TrialFailure,
    OptimizationResult
)

__all__ = [
    # Container
    "StrategyContainer",
    "IndicatorDescriptor",
    "SignalDescriptor",

    # Ledger
    "Position",
    "TradeEvent",
    "LedgerEntry",
    "Ledger",

    # Optimization
    "TrialResult",
    "TrialFailure",
    "OptimizationResult"
]
