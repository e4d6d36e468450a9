"""
SignalForge - Indicator Tests
=============================

Unit tests for the generator registry, built-in generators and the
indicator pipeline stage.

Author: SignalForge Team
"""

import pytest
import pandas as pd
import numpy as np

from signalforge import add_indicator, initialize
from signalforge.config import EngineSettings
from signalforge.exceptions import (
    DuplicateIndicatorError,
    GeneratorArgumentError,
    GeneratorOutputError,
    InsufficientHistoryError,
    UnknownGeneratorError
)
from signalforge.indicators import GeneratorRegistry, default_registry, generators


@pytest.fixture
def long_container(sample_ohlcv_data):
    """252-row single-security container."""
    return initialize(["LONG"], {"LONG": sample_ohlcv_data})


class TestRegistry:
    """Test GeneratorRegistry."""

    def test_builtins_registered(self):
        """The default registry carries the built-in capability set."""
        for name in ("sma", "ema", "wma", "rsi", "roc", "atr", "bollinger_upper",
                     "bollinger_lower", "lag", "momentum", "rolling_std", "highest", "lowest"):
            assert name in default_registry

    def test_resolve_by_function(self):
        """Registered functions resolve to their spec."""
        assert default_registry.resolve(generators.sma).name == "sma"

    def test_resolve_unknown(self):
        """Unregistered names and callables are rejected."""
        with pytest.raises(UnknownGeneratorError):
            default_registry.resolve("nope")

        with pytest.raises(UnknownGeneratorError):
            default_registry.resolve(lambda series: series)

    def test_register_decorator(self):
        """Custom generators register on their own registry."""
        registry = GeneratorRegistry()

        @registry.generator("midpoint", inputs=("high", "low"),
                            input_defaults={"high": "HIGH", "low": "LOW"}, window_arg=None)
        def midpoint(high, low):
            return (high + low) / 2

        spec = registry.resolve("midpoint")
        assert spec.inputs == ("high", "low")
        assert spec.window({}) is None
        assert "midpoint" not in default_registry

    def test_register_twice(self):
        """Names cannot be registered twice without replace."""
        registry = GeneratorRegistry()
        registry.register("ident", lambda series: series, window_arg=None)

        with pytest.raises(ValueError):
            registry.register("ident", lambda series: series, window_arg=None)

    def test_register_undeclared_window(self):
        """The window argument must be a parameter of the function."""
        with pytest.raises(ValueError):
            GeneratorRegistry().register("ident", lambda series: series)


class TestAddIndicator:
    """Test the indicator pipeline stage."""

    def test_sma_shape(self, long_container):
        """Rolling output has n rows with the first window-1 missing."""
        container = add_indicator(long_container, "SMA20", "sma", {"window": 20})
        sma = container.series["LONG"]["SMA20"]

        assert len(sma) == 252
        assert sma.iloc[:19].isna().all()
        assert sma.iloc[19:].notna().all()

    def test_sma_values(self, long_container):
        """SMA equals the pandas rolling mean."""
        container = add_indicator(long_container, "SMA20", "sma", {"window": 20})
        frame = container.series["LONG"]

        expected = frame["CLOSE"].rolling(20).mean()
        pd.testing.assert_series_equal(frame["SMA20"], expected, check_names=False)

    @pytest.mark.parametrize("generator, args", [
        ("sma", {"window": 10}),
        ("ema", {"window": 10}),
        ("rsi", {"window": 14}),
        ("atr", {"window": 14}),
        ("bollinger_upper", {"window": 20}),
        ("highest", {"window": 5}),
    ])
    def test_causal(self, sample_ohlcv_data, generator, args):
        """Changing future rows does not change past values."""
        altered = sample_ohlcv_data.copy()
        altered.iloc[200:, :] = altered.iloc[200:, :] * 3

        base = add_indicator(initialize(["X"], {"X": sample_ohlcv_data}), "IND", generator, args)
        other = add_indicator(initialize(["X"], {"X": altered}), "IND", generator, args)

        pd.testing.assert_series_equal(
            base.series["X"]["IND"].iloc[:200],
            other.series["X"]["IND"].iloc[:200]
        )

    def test_rsi_range(self, long_container):
        """RSI stays within 0-100."""
        container = add_indicator(long_container, "RSI", "rsi", {"window": 14})
        rsi = container.series["LONG"]["RSI"].dropna()

        assert ((rsi >= 0) & (rsi <= 100)).all()

    def test_stacking(self, five_day_container):
        """Later indicators may read earlier ones."""
        container = add_indicator(five_day_container, "SMA2", "sma", {"window": 2})
        container = add_indicator(container, "SLOPE", "momentum", {"series": "SMA2", "window": 1})

        slope = container.series["AAA"]["SLOPE"]
        assert slope.iloc[2:].tolist() == pytest.approx([1.0, -1.0, 0.5])
        assert list(container.indicators) == ["SMA2", "SLOPE"]

    def test_lag(self, five_day_container):
        """lag uses 'periods' as its window argument."""
        container = add_indicator(five_day_container, "PREV", "lag", {"periods": 1})

        assert container.series["AAA"]["PREV"].iloc[1:].tolist() == [10, 11, 12, 9]

    def test_input_container_unchanged(self, five_day_container):
        """The stage returns a new container."""
        add_indicator(five_day_container, "SMA2", "sma", {"window": 2})

        assert "SMA2" not in five_day_container.series["AAA"].columns
        assert not five_day_container.indicators

    def test_descriptor(self, five_day_container):
        """The descriptor records the generator and arguments."""
        container = add_indicator(five_day_container, "SMA2", "sma", {"window": 2})
        descriptor = container.indicators["SMA2"]

        assert descriptor.generator == "sma"
        assert descriptor.arguments == {"window": 2}


class TestIndicatorErrors:
    """Test indicator declaration errors."""

    def test_duplicate_raw_column(self, five_day_container):
        """Names clashing with data columns are rejected."""
        with pytest.raises(DuplicateIndicatorError):
            add_indicator(five_day_container, "CLOSE", "sma", {"window": 2})

    def test_duplicate_indicator(self, five_day_container):
        """Indicator names are unique."""
        container = add_indicator(five_day_container, "SMA2", "sma", {"window": 2})

        with pytest.raises(DuplicateIndicatorError):
            add_indicator(container, "SMA2", "ema", {"window": 2})

    def test_unknown_generator(self, five_day_container):
        """Unregistered generators are rejected."""
        with pytest.raises(UnknownGeneratorError):
            add_indicator(five_day_container, "X", "does_not_exist")

    @pytest.mark.parametrize("args", [
        {"series": "NOPE", "window": 2},
        {"window": 2, "bogus": 1},
        {"window": 0},
        {"window": 2.5},
        {"window": True},
        {"series": 3, "window": 2},
    ])
    def test_bad_arguments(self, five_day_container, args):
        """Bad columns, unknown arguments and invalid windows are rejected."""
        with pytest.raises(GeneratorArgumentError):
            add_indicator(five_day_container, "X", "sma", args)

    def test_bad_output(self, five_day_container):
        """Misaligned generator output is rejected."""
        registry = GeneratorRegistry()
        registry.register("short", lambda series: series.iloc[1:], window_arg=None)

        with pytest.raises(GeneratorOutputError):
            add_indicator(five_day_container, "X", "short", registry=registry)

    def test_generator_exception_wrapped(self, five_day_container):
        """Runtime failures inside a generator surface as GeneratorArgumentError."""
        registry = GeneratorRegistry()
        registry.register("anchored", lambda series, window: series - series.iloc[window])

        with pytest.raises(GeneratorArgumentError) as exc_info:
            add_indicator(five_day_container, "X", "anchored", {"window": 50}, registry=registry)

        assert "IndexError" in exc_info.value.issue
        assert exc_info.value.symbol == "AAA"

    def test_ndarray_output_accepted(self, five_day_container):
        """Same-length arrays are aligned to the series index."""
        registry = GeneratorRegistry()
        registry.register("double", lambda series: series.to_numpy() * 2, window_arg=None)

        container = add_indicator(five_day_container, "X2", "double", registry=registry)

        assert container.series["AAA"]["X2"].tolist() == [20, 22, 24, 18, 26]


class TestInsufficientHistory:
    """Test window-longer-than-history handling."""

    def test_flagged_not_raised(self, five_day_container):
        """The column is appended and the condition recorded."""
        container = add_indicator(five_day_container, "SMA10", "sma", {"window": 10})

        assert container.series["AAA"]["SMA10"].isna().all()
        assert len(container.warnings) == 1
        warning = container.warnings[0]
        assert isinstance(warning, InsufficientHistoryError)
        assert warning.window == 10
        assert warning.available_rows == 5

    def test_logged_at_warning(self, five_day_container, mocker):
        """The flag is logged."""
        logger = mocker.patch("signalforge.indicators.pipeline.logger")

        add_indicator(five_day_container, "SMA10", "sma", {"window": 10})

        logger.warning.assert_called_once()

    def test_strict_mode_raises(self, five_day_container):
        """Strict history checking raises and leaves the container unchanged."""
        settings = EngineSettings(_env_file=None, strict_history=True)

        with pytest.raises(InsufficientHistoryError):
            add_indicator(five_day_container, "SMA10", "sma", {"window": 10}, settings=settings)

        assert "SMA10" not in five_day_container.series["AAA"].columns


class TestParallelSecurities:
    """Test per-security thread pool computation."""

    def test_parallel_matches_sequential(self, two_security_frames):
        """Thread pool results equal the sequential ones."""
        container = initialize(["AAA", "BBB"], two_security_frames)
        settings = EngineSettings(_env_file=None, parallel_securities=True, max_workers=2)

        sequential = add_indicator(container, "SMA2", "sma", {"window": 2})
        parallel = add_indicator(container, "SMA2", "sma", {"window": 2}, settings=settings)

        for symbol in ("AAA", "BBB"):
            pd.testing.assert_series_equal(
                sequential.series[symbol]["SMA2"], parallel.series[symbol]["SMA2"]
            )
