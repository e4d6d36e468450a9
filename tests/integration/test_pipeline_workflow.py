"""
SignalForge - Pipeline Integration Tests
========================================

Integration tests for full strategy workflows.

Author: SignalForge Team
"""

import pickle

import pytest
import pandas as pd

from signalforge import (
    PARAM,
    BacktestConfig,
    ColumnPredicate,
    CSVDataSource,
    IndicatorTemplate,
    SignalTemplate,
    StrategyPipeline,
    add_indicator,
    add_signal,
    apply_optimization,
    compile_strategy,
    initialize,
    optimize_strategy,
    run_backtest
)
from signalforge.enums import TradeDecision
from signalforge.exceptions import UnknownSignalError

pytestmark = pytest.mark.integration


class TestHandComputedWorkflow:
    """Closes 10, 11, 12, 9, 13 with a 2-day SMA."""

    def test_functional_api(self, five_day_data):
        """Buy on day two at 11, hold to the end."""
        container = initialize(["AAA"], {"AAA": five_day_data})
        container = add_indicator(container, "SMA2", "sma", {"window": 2})
        container = add_signal(container, "above", "CLOSE > SMA2")
        container = compile_strategy(container, ["above"])
        result = run_backtest(container, BacktestConfig(initial_capital=100_000))

        assert container.series["AAA"]["SMA2"].tolist()[1:] == pytest.approx([10.5, 11.5, 10.5, 11.0])
        assert container.decisions["AAA"].iloc[1] == TradeDecision.BUY

        first_buy = result.ledger.trades[0]
        assert first_buy.date == pd.Timestamp("2024-01-02")
        assert first_buy.price == 11
        assert first_buy.quantity == 100_000 // 11

        # 9090 shares at 13 plus 10 left in cash
        assert result.final_value == pytest.approx(9090 * 13 + 10)
        assert result.ledger.final.positions == {"AAA": 9090}

    def test_fluent_pipeline(self, five_day_data):
        """The fluent builder reaches the same ledger."""
        result = (
            StrategyPipeline(["AAA"], {"AAA": five_day_data})
            .add_indicator("SMA2", "sma", {"window": 2})
            .add_signal("above", "CLOSE > SMA2")
            .compile()
            .run(BacktestConfig())
        )

        assert result.final_value == pytest.approx(118_180)
        assert result.ledger.to_frame()["value"].iloc[0] == 100_000

    def test_fluent_failure_keeps_state(self, five_day_data):
        """A failing call leaves the previous container in place."""
        pipeline = StrategyPipeline(["AAA"], {"AAA": five_day_data}).add_indicator("SMA2", "sma", {"window": 2})
        before = pipeline.container

        with pytest.raises(UnknownSignalError):
            pipeline.compile(["nope"])

        assert pipeline.container is before


class TestMultiSecurityWorkflow:
    """Test multi-security strategies from CSV files."""

    def test_csv_two_securities(self, tmp_path, sample_ohlcv_data, trending_data):
        """Two securities with different histories share one calendar."""
        sample_ohlcv_data.rename_axis("Date").reset_index().to_csv(tmp_path / "LONG.csv", index=False)
        trending_data.rename_axis("Date").reset_index().to_csv(tmp_path / "TREND.csv", index=False)

        pipeline = (
            StrategyPipeline({"TREND", "LONG"}, CSVDataSource(tmp_path))
            .add_indicator("FAST", "ema", {"window": 5})
            .add_indicator("SLOW", "sma", {"window": 20})
            .add_indicator("RSI", "rsi", {"window": 14})
            .add_signal("golden", "cross_above(FAST, SLOW)")
            .add_signal("death", "cross_below(FAST, SLOW) or RSI > 80", "sell")
            .compile(["golden", "death"])
        )
        result = pipeline.run(BacktestConfig(commission_rate=0.001))

        assert pipeline.container.universe == ("LONG", "TREND")
        assert len(result.ledger) == 252
        assert set(result.ledger.final.positions) == {"LONG", "TREND"}
        assert result.final_value > 0

        frame = result.ledger.to_frame()
        assert {"cash", "value", "pos_LONG", "pos_TREND"} <= set(frame.columns)
        assert (frame["cash"] >= 0).all()

        trades = result.ledger.trades_frame()
        assert set(trades["symbol"]) <= {"LONG", "TREND"}

    def test_column_predicate_workflow(self, trending_data):
        """Callable predicates combine with expression signals."""
        container = initialize(["AAA"], {"AAA": trending_data})
        container = add_indicator(container, "ATR", "atr", {"window": 14})
        container = add_indicator(container, "LOW20", "lowest", {"series": "LOW", "window": 20})
        container = add_signal(
            container, "quiet",
            ColumnPredicate(lambda f: (f["HIGH"] - f["LOW"]) < f["ATR"], columns=("HIGH", "LOW", "ATR"))
        )
        container = add_signal(container, "breakdown", "CLOSE < shift(LOW20, 1)", "sell")
        result = run_backtest(compile_strategy(container, ["quiet", "breakdown"]))

        assert len(result.ledger) == len(trending_data)


class TestOptimizationWorkflow:
    """Test a sweep followed by a final run."""

    def test_sweep_then_run_best(self, trending_data):
        """The best parameter reproduces its objective in a standalone run."""
        factory = lambda: initialize(["AAA"], {"AAA": trending_data})  # noqa: E731
        config = BacktestConfig()

        result = optimize_strategy(
            factory,
            IndicatorTemplate("SMA", "sma", {"window": PARAM}),
            range(5, 35, 5),
            [SignalTemplate("up", "CLOSE > SMA"), SignalTemplate("down", "CLOSE < SMA", "sell")],
            config=config
        )
        assert result.trial_count == 6

        best = (
            StrategyPipeline.from_container(factory())
            .add_indicator("SMA", "sma", {"window": result.best_parameter})
            .add_signal("up", "CLOSE > SMA")
            .add_signal("down", "CLOSE < SMA", "sell")
            .compile()
            .run(config)
        )
        assert best.final_value == pytest.approx(result.best_objective)

        final = apply_optimization(best, result)
        assert final.trial_count == 6
        assert final.best_parameter == result.best_parameter

        restored = pickle.loads(pickle.dumps(final))
        assert restored.final_value == pytest.approx(final.final_value)
        assert restored.trial_count == 6
