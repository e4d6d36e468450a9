"""
SignalForge - Compiler Tests
============================

Unit tests for compile_strategy.

Author: SignalForge Team
"""

import pytest

from signalforge import add_signal, compile_strategy, run_backtest
from signalforge.enums import TradeDecision
from signalforge.exceptions import UnknownSignalError

BUY, SELL, HOLD = TradeDecision.BUY, TradeDecision.SELL, TradeDecision.HOLD


class TestCompileStrategy:
    """Test decision compilation."""

    def test_buy_only(self, sma_container):
        """True BUY signals compile to BUY, everything else to HOLD."""
        container = compile_strategy(sma_container, ["above"])

        assert container.decisions["AAA"].tolist() == [HOLD, BUY, BUY, HOLD, BUY]
        assert container.compiled_signals == ("above",)
        assert container.is_compiled

    def test_single_name_string(self, sma_container):
        """A single signal may be passed as a string."""
        container = compile_strategy(sma_container, "above")

        assert container.compiled_signals == ("above",)

    def test_sell_takes_precedence(self, sma_container):
        """SELL wins when a buy and a sell signal are both true."""
        container = add_signal(sma_container, "up_day", "CLOSE > shift(CLOSE, 1)", "sell")
        container = compile_strategy(container, ["above", "up_day"])

        # above: F T T F T, up_day: F T T F T
        assert container.decisions["AAA"].tolist() == [HOLD, SELL, SELL, HOLD, SELL]

    def test_mixed_decisions(self, sma_container):
        """Sell-only rows compile to SELL."""
        container = add_signal(sma_container, "below", "CLOSE < SMA2", "sell")
        container = compile_strategy(container, ["above", "below"])

        assert container.decisions["AAA"].tolist() == [HOLD, BUY, BUY, SELL, BUY]

    def test_unlisted_signals_ignored(self, sma_container):
        """Only listed signals take part."""
        container = add_signal(sma_container, "below", "CLOSE < SMA2", "sell")
        container = compile_strategy(container, ["below"])

        assert container.decisions["AAA"].tolist() == [HOLD, HOLD, HOLD, SELL, HOLD]

    def test_decision_frame(self, sma_container):
        """Decisions are exposed as a date x security frame."""
        frame = compile_strategy(sma_container, ["above"]).decision_frame()

        assert list(frame.columns) == ["AAA"]
        assert frame["AAA"].tolist() == ["hold", "buy", "buy", "hold", "buy"]

    def test_recompile_clears_ledger(self, sma_container, default_config):
        """Recompiling replaces decisions and drops the previous ledger."""
        ran = run_backtest(compile_strategy(sma_container, ["above"]), default_config)
        assert ran.has_run

        recompiled = compile_strategy(ran, ["above"])
        assert not recompiled.has_run


class TestCompileErrors:
    """Test compilation errors."""

    def test_unknown_signal(self, sma_container):
        """Undefined names raise and leave the container unchanged."""
        with pytest.raises(UnknownSignalError) as exc_info:
            compile_strategy(sma_container, ["above", "missing"])

        assert exc_info.value.names == ["missing"]
        assert not sma_container.is_compiled
        assert sma_container.compiled_signals == ()

    def test_empty_list(self, sma_container):
        """An empty signal list is rejected."""
        with pytest.raises(UnknownSignalError):
            compile_strategy(sma_container, [])
