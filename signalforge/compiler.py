"""
SignalForge - Strategy Compiler
===============================

Merges signal columns into one trade decision per security per date.

Precedence when listed signals disagree on a date:
    1. any SELL signal true -> SELL
    2. else any BUY signal true -> BUY
    3. else HOLD
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence, Union

import numpy as np
import pandas as pd

from signalforge.enums import Direction, TradeDecision
from signalforge.exceptions import UnknownSignalError
from signalforge.models.container import StrategyContainer
from signalforge.models.ledger import Ledger

logger = logging.getLogger(__name__)


def compile_strategy(
    container: StrategyContainer,
    signals: Union[str, Sequence[str]]
) -> StrategyContainer:
    """
    Compile the listed signals into TradeDecision series.

    Args:
        container: Input container (left unchanged)
        signals: Signal names, in order

    Returns:
        New container with ``decisions`` and ``compiled_signals`` set and an
        empty ledger

    Raises:
        UnknownSignalError: A listed name was never added, or the list is empty
    """
    names = [signals] if isinstance(signals, str) else list(signals)

    unknown = [name for name in names if name not in container.signals]
    if unknown or not names:
        raise UnknownSignalError(unknown, available=container.signals)

    # Keep first occurrence order, drop repeats
    names = list(dict.fromkeys(names))
    sells = [n for n in names if container.signals[n].direction == Direction.SELL]
    buys = [n for n in names if container.signals[n].direction == Direction.BUY]

    decisions = {
        symbol: _decide(container.series[symbol], buys, sells)
        for symbol in container.universe
    }

    updated = container.copy()
    updated.decisions = decisions
    updated.compiled_signals = tuple(names)
    updated.ledger = Ledger()

    counts = _count(decisions.values())
    logger.info(
        f"Compiled {len(names)} signal(s) {names}: "
        f"{counts[TradeDecision.BUY]} buy, {counts[TradeDecision.SELL]} sell decisions"
    )
    return updated


def _decide(frame: pd.DataFrame, buys: Sequence[str], sells: Sequence[str]) -> pd.Series:
    decisions = pd.Series([TradeDecision.HOLD] * len(frame), index=frame.index, dtype=object, name="decision")
    decisions.loc[_any_true(frame, buys)] = TradeDecision.BUY
    # Sell overrides buy on the same date
    decisions.loc[_any_true(frame, sells)] = TradeDecision.SELL
    return decisions


def _any_true(frame: pd.DataFrame, names: Sequence[str]) -> np.ndarray:
    if not names:
        return np.zeros(len(frame), dtype=bool)
    return frame[list(names)].fillna(False).astype(bool).any(axis=1).to_numpy()


def _count(series: Iterable[pd.Series]):
    counts = {decision: 0 for decision in TradeDecision}
    for s in series:
        for decision, n in s.value_counts().items():
            counts[decision] += int(n)
    return counts
