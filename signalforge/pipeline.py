"""
SignalForge - Strategy Pipeline
===============================

Fluent wrapper around the functional stages.

Example:
    ```python
    result = (
        StrategyPipeline(["AAA", "BBB"], source)
        .add_indicator("SMA20", "sma", {"window": 20})
        .add_signal("trend_up", "CLOSE > SMA20")
        .add_signal("trend_down", "CLOSE < SMA20", "sell")
        .compile(["trend_up", "trend_down"])
        .run()
    )
    print(result.ledger.final_value)
    ```
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import pandas as pd

from signalforge.compiler import compile_strategy
from signalforge.config import EngineSettings
from signalforge.data.sources import BaseDataSource
from signalforge.engine.backtest_engine import BacktestConfig
from signalforge.engine.executor import run_backtest
from signalforge.enums import Direction
from signalforge.indicators.pipeline import add_indicator
from signalforge.indicators.registry import GeneratorRegistry
from signalforge.models.container import StrategyContainer
from signalforge.signals.engine import add_signal
from signalforge.signals.expression import Predicate
from signalforge.universe import initialize

logger = logging.getLogger(__name__)


class StrategyPipeline:
    """
    Chainable strategy builder.

    Each call replaces ``self.container`` only if its stage succeeds; a
    failing call raises and leaves the previous container in place.
    """

    def __init__(
        self,
        universe: Iterable[str],
        source: Union[BaseDataSource, Mapping[str, pd.DataFrame]],
        *,
        registry: Optional[GeneratorRegistry] = None,
        settings: Optional[EngineSettings] = None
    ):
        self.registry = registry
        self.settings = settings
        self.container: StrategyContainer = initialize(universe, source)

    @classmethod
    def from_container(cls, container: StrategyContainer, **kwargs) -> "StrategyPipeline":
        """Wrap an existing container."""
        pipeline = cls.__new__(cls)
        pipeline.registry = kwargs.get("registry")
        pipeline.settings = kwargs.get("settings")
        pipeline.container = container
        return pipeline

    def add_indicator(
        self,
        name: str,
        generator: Any,
        generator_args: Optional[Mapping[str, Any]] = None
    ) -> "StrategyPipeline":
        self.container = add_indicator(
            self.container, name, generator, generator_args,
            registry=self.registry, settings=self.settings
        )
        return self

    def add_signal(
        self,
        name: str,
        predicate: Predicate,
        direction: Union[Direction, str] = Direction.BUY
    ) -> "StrategyPipeline":
        self.container = add_signal(self.container, name, predicate, direction, settings=self.settings)
        return self

    def compile(self, signals: Union[str, Sequence[str], None] = None) -> "StrategyPipeline":
        """Compile ``signals`` (default: every added signal)."""
        if signals is None:
            signals = list(self.container.signals)
        self.container = compile_strategy(self.container, signals)
        return self

    def run(
        self,
        config: Optional[BacktestConfig] = None,
        *,
        start: Any = None,
        end: Any = None
    ) -> StrategyContainer:
        """Run the backtest and return the resulting container."""
        if config is None and self.settings is not None:
            config = BacktestConfig.from_settings(self.settings)
        self.container = run_backtest(self.container, config, start=start, end=end)
        return self.container

    def __repr__(self) -> str:
        return f"<StrategyPipeline({self.container!r})>"
