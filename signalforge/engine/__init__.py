"""
SignalForge - Backtest Engine
=============================

Portfolio simulation over compiled trade decisions.
"""

from signalforge.engine.backtest_engine import BacktestConfig, ExecutionState
from signalforge.engine.executor import BacktestExecutor, run_backtest

__all__ = [
    "BacktestConfig",
    "ExecutionState",
    "BacktestExecutor",
    "run_backtest"
]
