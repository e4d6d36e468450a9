"""
SignalForge - Built-in Generators
=================================

Causal indicator generators registered in the default registry.

Every generator returns a series aligned with its input in which the value
at row i depends only on rows <= i. Rolling generators leave the first
``window - 1`` rows missing.

Moving averages, RSI, ROC and Bollinger bands come from the ``ta`` library;
the remaining window statistics are plain pandas.
"""

from __future__ import annotations

import pandas as pd
from ta.momentum import ROCIndicator, RSIIndicator
from ta.trend import EMAIndicator, SMAIndicator, WMAIndicator
from ta.volatility import BollingerBands

from signalforge.indicators.registry import register_generator


# =============================================================================
# MOVING AVERAGES
# =============================================================================

@register_generator("sma")
def sma(series: pd.Series, window: int = 20) -> pd.Series:
    """Simple moving average."""
    return SMAIndicator(close=series, window=window, fillna=False).sma_indicator()


@register_generator("ema")
def ema(series: pd.Series, window: int = 20) -> pd.Series:
    """Exponential moving average (span = window, seeded after window rows)."""
    return EMAIndicator(close=series, window=window, fillna=False).ema_indicator()


@register_generator("wma")
def wma(series: pd.Series, window: int = 9) -> pd.Series:
    """Linearly weighted moving average."""
    return WMAIndicator(close=series, window=window, fillna=False).wma()


# =============================================================================
# MOMENTUM
# =============================================================================

@register_generator("rsi")
def rsi(series: pd.Series, window: int = 14) -> pd.Series:
    """Relative strength index (0-100)."""
    return RSIIndicator(close=series, window=window, fillna=False).rsi()


@register_generator("roc")
def roc(series: pd.Series, window: int = 12) -> pd.Series:
    """Rate of change in percent over ``window`` rows."""
    return ROCIndicator(close=series, window=window, fillna=False).roc()


@register_generator("momentum")
def momentum(series: pd.Series, window: int = 10) -> pd.Series:
    """Difference to the value ``window`` rows earlier."""
    return series.diff(window)


@register_generator("lag", window_arg="periods")
def lag(series: pd.Series, periods: int = 1) -> pd.Series:
    """Value ``periods`` rows earlier."""
    return series.shift(periods)


# =============================================================================
# VOLATILITY & RANGE
# =============================================================================

@register_generator("rolling_std")
def rolling_std(series: pd.Series, window: int = 20) -> pd.Series:
    """Rolling sample standard deviation."""
    return series.rolling(window).std()


@register_generator("highest")
def highest(series: pd.Series, window: int = 20) -> pd.Series:
    """Rolling maximum."""
    return series.rolling(window).max()


@register_generator("lowest")
def lowest(series: pd.Series, window: int = 20) -> pd.Series:
    """Rolling minimum."""
    return series.rolling(window).min()


@register_generator(
    "atr",
    inputs=("high", "low", "close"),
    input_defaults={"high": "HIGH", "low": "LOW", "close": "CLOSE"}
)
def atr(high: pd.Series, low: pd.Series, close: pd.Series, window: int = 14) -> pd.Series:
    """Average true range (simple mean of the true range)."""
    tr = pd.concat([
        high - low,
        (high - close.shift(1)).abs(),
        (low - close.shift(1)).abs()
    ], axis=1).max(axis=1)
    return tr.rolling(window).mean()


@register_generator("bollinger_upper", window_arg="window")
def bollinger_upper(series: pd.Series, window: int = 20, window_dev: float = 2.0) -> pd.Series:
    """Upper Bollinger band."""
    return BollingerBands(close=series, window=window, window_dev=window_dev, fillna=False).bollinger_hband()


@register_generator("bollinger_lower", window_arg="window")
def bollinger_lower(series: pd.Series, window: int = 20, window_dev: float = 2.0) -> pd.Series:
    """Lower Bollinger band."""
    return BollingerBands(close=series, window=window, window_dev=window_dev, fillna=False).bollinger_lband()
