"""
SignalForge - Test Configuration
================================

Pytest fixtures and configuration for all tests.

Author: SignalForge Team
Version: 1.0.0
"""

import sys
import os
from typing import Callable, Dict, Optional, Sequence

import pytest
import pandas as pd
import numpy as np

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


def build_ohlcv(
    closes: Sequence[float],
    start: str = "2024-01-01",
    opens: Optional[Sequence[float]] = None,
    dates: Optional[Sequence] = None
) -> pd.DataFrame:
    """Deterministic OHLCV frame with lowercase columns and a date column."""
    closes = np.asarray(closes, dtype=float)
    opens = closes if opens is None else np.asarray(opens, dtype=float)
    if dates is None:
        dates = pd.bdate_range(start=start, periods=len(closes))

    return pd.DataFrame({
        'date': pd.to_datetime(list(dates)),
        'open': opens,
        'high': np.maximum(opens, closes) + 0.5,
        'low': np.minimum(opens, closes) - 0.5,
        'close': closes,
        'volume': [1_000_000] * len(closes)
    })


# =============================================================================
# DATA FIXTURES
# =============================================================================

@pytest.fixture
def ohlcv_factory() -> Callable[..., pd.DataFrame]:
    """Factory for small hand-computable frames."""
    return build_ohlcv


@pytest.fixture
def five_day_data() -> pd.DataFrame:
    """Closes 10, 11, 12, 9, 13 on consecutive business days."""
    return build_ohlcv([10, 11, 12, 9, 13])


@pytest.fixture
def sample_ohlcv_data() -> pd.DataFrame:
    """Create sample OHLCV data for testing."""
    np.random.seed(42)
    periods = 252  # 1 year of daily data

    dates = pd.bdate_range(start='2023-01-02', periods=periods)

    returns = np.random.normal(0.0005, 0.02, periods)
    close = 100 * np.cumprod(1 + returns)

    data = pd.DataFrame({
        'Open': close * (1 + np.random.uniform(-0.01, 0.01, periods)),
        'High': close * (1 + np.abs(np.random.normal(0, 0.015, periods))),
        'Low': close * (1 - np.abs(np.random.normal(0, 0.015, periods))),
        'Close': close,
        'Volume': np.random.randint(100000, 2000000, periods)
    }, index=dates)

    # Fix OHLC consistency
    data['High'] = data[['Open', 'Close', 'High']].max(axis=1)
    data['Low'] = data[['Open', 'Close', 'Low']].min(axis=1)

    return data


@pytest.fixture
def trending_data() -> pd.DataFrame:
    """Create uptrending data for testing trend-following strategies."""
    np.random.seed(7)
    periods = 120

    dates = pd.bdate_range(start='2023-01-02', periods=periods)

    trend = np.linspace(0, 30, periods)
    noise = np.random.normal(0, 2, periods)
    close = 100 + trend + np.cumsum(noise * 0.3)

    data = pd.DataFrame({
        'Open': np.roll(close, 1),
        'High': close * 1.01,
        'Low': close * 0.99,
        'Close': close,
        'Volume': np.random.randint(500000, 1500000, periods)
    }, index=dates)

    data.iloc[0, data.columns.get_loc('Open')] = 100
    data['High'] = data[['Open', 'Close', 'High']].max(axis=1)
    data['Low'] = data[['Open', 'Close', 'Low']].min(axis=1)

    return data


@pytest.fixture
def two_security_frames(ohlcv_factory) -> Dict[str, pd.DataFrame]:
    """Two securities on the same four dates."""
    return {
        "AAA": ohlcv_factory([10, 10, 12, 12]),
        "BBB": ohlcv_factory([20, 20, 20, 30]),
    }


# =============================================================================
# SOURCE & CONTAINER FIXTURES
# =============================================================================

@pytest.fixture
def memory_source(five_day_data, sample_ohlcv_data):
    """In-memory source with a short and a long series."""
    from signalforge.data import InMemoryDataSource

    return InMemoryDataSource({"AAA": five_day_data, "LONG": sample_ohlcv_data})


@pytest.fixture
def five_day_container(five_day_data):
    """Single-security container over the five-day frame."""
    from signalforge import initialize

    return initialize(["AAA"], {"AAA": five_day_data})


@pytest.fixture
def sma_container(five_day_container):
    """Five-day container with a 2-day SMA and an above-SMA buy signal."""
    from signalforge import add_indicator, add_signal

    container = add_indicator(five_day_container, "SMA2", "sma", {"window": 2})
    return add_signal(container, "above", "CLOSE > SMA2")


# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture
def settings():
    """Engine settings isolated from the environment and .env files."""
    from signalforge.config import EngineSettings

    return EngineSettings(_env_file=None)


@pytest.fixture
def default_config():
    """Default backtest configuration."""
    from signalforge import BacktestConfig

    return BacktestConfig(
        initial_capital=100_000,
        commission_rate=0.0,
        log_trades=False
    )


@pytest.fixture
def commission_config():
    """Configuration with a 1% commission on both sides."""
    from signalforge import BacktestConfig

    return BacktestConfig(
        initial_capital=10_000,
        commission_rate=0.01,
        log_trades=True
    )


# =============================================================================
# UTILITY FIXTURES
# =============================================================================

@pytest.fixture
def mock_logger(mocker):
    """Mock the executor logger."""
    return mocker.patch('signalforge.engine.executor.logger')


@pytest.fixture(autouse=True)
def reset_random_seed():
    """Reset random seed before each test."""
    np.random.seed(42)
    yield


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch):
    """Keep environment settings from leaking into tests."""
    from signalforge.config import get_settings

    for key in list(os.environ):
        if key.startswith("SIGNALFORGE_"):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
