"""
SignalForge
===========

Rule-based multi-security backtesting and parameter search.

Usage:
    ```python
    from signalforge import (
        initialize, add_indicator, add_signal, compile_strategy, run_backtest,
        BacktestConfig
    )

    container = initialize(["AAA", "BBB"], {"AAA": frame_a, "BBB": frame_b})
    container = add_indicator(container, "SMA20", "sma", {"window": 20})
    container = add_signal(container, "trend_up", "CLOSE > SMA20")
    container = add_signal(container, "trend_down", "CLOSE < SMA20", "sell")
    container = compile_strategy(container, ["trend_up", "trend_down"])

    # Run backtest
    result = run_backtest(container, BacktestConfig(initial_capital=100000))

    # View results
    print(result.ledger.to_frame().tail())
    ```

Author: SignalForge Team
Version: 1.0.0
"""

# Exceptions
from signalforge.exceptions import (
    BacktestError,
    ConfigurationError,
    InvalidConfigError,
    DataError,
    UnknownSecurityError,
    InvalidDataError,
    InsufficientHistoryError,
    StrategyError,
    DuplicateIndicatorError,
    GeneratorArgumentError,
    UnknownGeneratorError,
    GeneratorOutputError,
    DuplicateSignalError,
    UndefinedColumnError,
    ExpressionError,
    UnknownSignalError,
    OptimizationError,
    EmptyRangeError
)

# Enums
from signalforge.enums import (
    Direction,
    TradeDecision,
    TradeSide,
    AllocationMode,
    FillMode
)

# Configuration
from signalforge.config import EngineSettings, get_settings, configure_logging

# Models
from signalforge.models import (
    StrategyContainer,
    IndicatorDescriptor,
    SignalDescriptor,
    Position,
    TradeEvent,
    LedgerEntry,
    Ledger,
    TrialResult,
    TrialFailure,
    OptimizationResult
)

# Data
from signalforge.data import BaseDataSource, InMemoryDataSource, CSVDataSource

# Pipeline stages
from signalforge.universe import initialize
from signalforge.indicators import GeneratorRegistry, default_registry, register_generator, add_indicator
from signalforge.signals import ColumnPredicate, Expression, add_signal
from signalforge.compiler import compile_strategy
from signalforge.engine import BacktestConfig, BacktestExecutor, run_backtest
from signalforge.optimizer import (
    PARAM,
    IndicatorTemplate,
    SignalTemplate,
    optimize_strategy,
    apply_optimization
)
from signalforge.pipeline import StrategyPipeline

__version__ = "1.0.0"

__all__ = [
    # Exceptions
    "BacktestError",
    "ConfigurationError",
    "InvalidConfigError",
    "DataError",
    "UnknownSecurityError",
    "InvalidDataError",
    "InsufficientHistoryError",
    "StrategyError",
    "DuplicateIndicatorError",
    "GeneratorArgumentError",
    "UnknownGeneratorError",
    "GeneratorOutputError",
    "DuplicateSignalError",
    "UndefinedColumnError",
    "ExpressionError",
    "UnknownSignalError",
    "OptimizationError",
    "EmptyRangeError",

    # Enums
    "Direction",
    "TradeDecision",
    "TradeSide",
    "AllocationMode",
    "FillMode",

    # Configuration
    "EngineSettings",
    "get_settings",
    "configure_logging",

    # Models
    "StrategyContainer",
    "IndicatorDescriptor",
    "SignalDescriptor",
    "Position",
    "TradeEvent",
    "LedgerEntry",
    "Ledger",
    "TrialResult",
    "TrialFailure",
    "OptimizationResult",

    # Data
    "BaseDataSource",
    "InMemoryDataSource",
    "CSVDataSource",

    # Pipeline
    "initialize",
    "GeneratorRegistry",
    "default_registry",
    "register_generator",
    "add_indicator",
    "ColumnPredicate",
    "Expression",
    "add_signal",
    "compile_strategy",
    "BacktestConfig",
    "BacktestExecutor",
    "run_backtest",
    "PARAM",
    "IndicatorTemplate",
    "SignalTemplate",
    "optimize_strategy",
    "apply_optimization",
    "StrategyPipeline"
]
