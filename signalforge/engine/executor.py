"""
SignalForge - Backtest Executor
===============================

Simulates a long-only portfolio over compiled trade decisions.

The executor walks one global calendar (the sorted union of every security's
dates). On each date it first liquidates positions with a SELL decision, then
opens positions for flat securities with a BUY decision, then marks the
account to the close and appends one LedgerEntry.

Author: SignalForge Team
Version: 1.0.0
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd

from signalforge.engine.backtest_engine import BacktestConfig, ExecutionState
from signalforge.enums import AllocationMode, FillMode, TradeDecision, TradeSide
from signalforge.exceptions import InvalidConfigError, StrategyError
from signalforge.models.container import StrategyContainer
from signalforge.models.ledger import Ledger, TradeEvent

logger = logging.getLogger(__name__)

DateLike = Union[str, pd.Timestamp, None]


class BacktestExecutor:
    """
    Daily portfolio simulator.

    Example:
        ```python
        executor = BacktestExecutor(BacktestConfig(initial_capital=50_000))
        result = executor.run(compiled_container)
        print(result.ledger.final_value)
        ```
    """

    def __init__(self, config: Optional[BacktestConfig] = None):
        self.config = config or BacktestConfig.from_settings()
        self.config.validate()
        self.state = ExecutionState()

    def run(
        self,
        container: StrategyContainer,
        start: DateLike = None,
        end: DateLike = None
    ) -> StrategyContainer:
        """
        Run the backtest.

        Args:
            container: Compiled container (left unchanged)
            start: First calendar date to simulate (inclusive)
            end: Last calendar date to simulate (inclusive)

        Returns:
            New container whose ledger holds one entry per calendar date

        Raises:
            StrategyError: Container has no compiled decisions
            InvalidConfigError: Date range selects no calendar dates
        """
        if not container.is_compiled:
            raise StrategyError(
                "Strategy has no compiled decisions; call compile_strategy first",
                error_code="SF_NOT_COMPILED"
            )

        universe = list(container.universe)
        calendar = self._build_calendar(container, start, end)

        marks = self._aligned(container, "CLOSE", calendar, ffill=True)
        fills = self._fill_prices(container, calendar)
        decisions = self._aligned_decisions(container, calendar)

        logger.info(
            f"Starting backtest: {len(universe)} securities, {len(calendar)} dates "
            f"({calendar[0].date()} to {calendar[-1].date()})"
        )

        self.state.reset(self.config.initial_capital, universe)
        ledger = Ledger()

        for i, date in enumerate(calendar):
            today_marks = {symbol: marks[symbol][i] for symbol in universe}

            # Phase 1: liquidate
            for symbol in universe:
                if decisions[symbol][i] is TradeDecision.SELL:
                    self._sell(symbol, fills[symbol][i], date)

            # Phase 2: open positions for flat buyers
            buyers = [
                symbol for symbol in universe
                if decisions[symbol][i] is TradeDecision.BUY
                and self.state.positions[symbol].is_flat
                and _tradable(fills[symbol][i])
            ]
            if buyers:
                allocations = self._allocate(buyers, universe, today_marks)
                for symbol in buyers:
                    self._buy(symbol, fills[symbol][i], allocations[symbol], date)

            ledger.append(self.state.settle(date, today_marks))

        updated = container.copy()
        updated.ledger = ledger

        initial = self.config.initial_capital
        final = ledger.final_value
        logger.info(
            f"Backtest complete: {len(ledger.trades)} trades, final value {final:,.2f} "
            f"({(final - initial) / initial:+.2%})"
        )
        return updated

    # =========================================================================
    # PREPARATION
    # =========================================================================

    def _build_calendar(
        self,
        container: StrategyContainer,
        start: DateLike,
        end: DateLike
    ) -> pd.DatetimeIndex:
        calendar = pd.DatetimeIndex([], name="date")
        for symbol in container.universe:
            calendar = calendar.union(container.series[symbol].index)
        calendar = calendar.sort_values()

        if start is not None:
            calendar = calendar[calendar >= pd.Timestamp(start)]
        if end is not None:
            calendar = calendar[calendar <= pd.Timestamp(end)]

        if len(calendar) == 0:
            raise InvalidConfigError(
                "start/end", (start, end), "a range containing at least one trading date"
            )
        return calendar

    def _aligned(
        self,
        container: StrategyContainer,
        column: str,
        calendar: pd.DatetimeIndex,
        ffill: bool
    ) -> Dict[str, np.ndarray]:
        aligned = {}
        for symbol in container.universe:
            values = container.series[symbol][column]
            if ffill:
                # Fill over the full history so a clipped start still sees the prior close
                full = values.reindex(values.index.union(calendar)).ffill()
                aligned[symbol] = full.reindex(calendar).to_numpy(dtype=float)
            else:
                aligned[symbol] = values.reindex(calendar).to_numpy(dtype=float)
        return aligned

    def _fill_prices(self, container: StrategyContainer, calendar: pd.DatetimeIndex) -> Dict[str, np.ndarray]:
        # No fills on dates where the security has no row
        return self._aligned(container, self.config.fill_mode.price_column, calendar, ffill=False)

    def _aligned_decisions(
        self,
        container: StrategyContainer,
        calendar: pd.DatetimeIndex
    ) -> Dict[str, List[TradeDecision]]:
        aligned = {}
        for symbol in container.universe:
            decisions = container.decisions.get(symbol)
            if decisions is None:
                aligned[symbol] = [TradeDecision.HOLD] * len(calendar)
                continue
            if self.config.fill_mode == FillMode.NEXT_OPEN:
                # Act on the previous row's decision at this row's open
                decisions = decisions.shift(1)
            aligned[symbol] = [
                d if isinstance(d, TradeDecision) else TradeDecision.HOLD
                for d in decisions.reindex(calendar)
            ]
        return aligned

    # =========================================================================
    # SIZING
    # =========================================================================

    def _allocate(
        self,
        buyers: List[str],
        universe: List[str],
        marks: Dict[str, float]
    ) -> Dict[str, float]:
        """Cash budget per buyer; later buyers are capped by remaining cash at fill time."""
        cash = self.state.cash
        mode = self.config.allocation_mode

        if mode == AllocationMode.EQUAL_WEIGHT:
            budget = cash / len(buyers)
        elif mode == AllocationMode.FIXED_FRACTION:
            budget = cash * self.config.allocation_fraction
        else:
            budget = self.state.account_value(marks) / len(universe)

        return {symbol: budget for symbol in buyers}

    def _quantity(self, allocation: float, price: float) -> float:
        unit_cost = price * (1 + self.config.commission_rate)
        raw = allocation / unit_cost
        if self.config.fractional_shares:
            return raw
        lot = self.config.lot_size
        return float(math.floor(raw / lot) * lot)

    # =========================================================================
    # EXECUTION
    # =========================================================================

    def _buy(self, symbol: str, price: float, allocation: float, date: pd.Timestamp) -> None:
        allocation = min(allocation, self.state.cash)
        if allocation <= 0:
            logger.debug(f"No cash to buy {symbol} on {date.date()}")
            return

        quantity = self._quantity(allocation, price)
        if quantity <= 0:
            logger.debug(f"Allocation {allocation:.2f} too small for one lot of {symbol} @ {price:.2f}")
            return

        notional = quantity * price
        commission = notional * self.config.commission_rate
        self.state.cash -= notional + commission
        if abs(self.state.cash) < 1e-9:
            self.state.cash = 0.0

        self.state.positions[symbol].add(quantity, price)
        self.state.trades_today.append(TradeEvent(
            date=date,
            symbol=symbol,
            side=TradeSide.BUY,
            quantity=quantity,
            price=price,
            commission=commission
        ))

        if self.config.log_trades:
            logger.info(f"OPEN {quantity:g} {symbol} @ {price:.2f} on {date.date()}")

    def _sell(self, symbol: str, price: float, date: pd.Timestamp) -> None:
        position = self.state.positions[symbol]
        if position.is_flat or not _tradable(price):
            return

        quantity, avg_cost = position.close()
        notional = quantity * price
        commission = notional * self.config.commission_rate
        self.state.cash += notional - commission
        pnl = (price - avg_cost) * quantity - commission

        self.state.trades_today.append(TradeEvent(
            date=date,
            symbol=symbol,
            side=TradeSide.SELL,
            quantity=quantity,
            price=price,
            commission=commission,
            realized_pnl=pnl
        ))

        if self.config.log_trades:
            pnl_str = f"+{pnl:.2f}" if pnl >= 0 else f"{pnl:.2f}"
            logger.info(f"CLOSE {quantity:g} {symbol} @ {price:.2f} on {date.date()} P&L: {pnl_str}")


def _tradable(price: float) -> bool:
    return not np.isnan(price) and price > 0


def run_backtest(
    container: StrategyContainer,
    config: Optional[BacktestConfig] = None,
    *,
    start: DateLike = None,
    end: DateLike = None
) -> StrategyContainer:
    """
    Simulate the compiled strategy and return a container with its ledger.

    Args:
        container: Compiled container (left unchanged)
        config: Backtest configuration (default: from settings)
        start: Optional first calendar date
        end: Optional last calendar date

    Returns:
        New container with ``ledger`` populated
    """
    return BacktestExecutor(config).run(container, start=start, end=end)
