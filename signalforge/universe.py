"""
SignalForge - Universe Initialization
=====================================

Builds a fresh StrategyContainer from a universe and a data source.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Tuple, Union

import pandas as pd

from signalforge.data.sources import BaseDataSource, as_data_source
from signalforge.exceptions import InvalidConfigError
from signalforge.models.container import StrategyContainer

logger = logging.getLogger(__name__)


def normalize_universe(universe: Iterable[str]) -> Tuple[str, ...]:
    """
    Deterministic universe order.

    Sets are sorted; other iterables keep their order with repeats dropped.
    """
    if isinstance(universe, str):
        universe = [universe]
    elif isinstance(universe, (set, frozenset)):
        universe = sorted(universe)
    return tuple(dict.fromkeys(universe))


def initialize(
    universe: Iterable[str],
    source: Union[BaseDataSource, Mapping[str, pd.DataFrame]]
) -> StrategyContainer:
    """
    Create a container holding the canonical series of every security.

    Args:
        universe: Security identifiers
        source: Data source, or a mapping of identifier to DataFrame

    Returns:
        Container with no indicators, signals or decisions and an empty ledger

    Raises:
        InvalidConfigError: Empty universe
        UnknownSecurityError: An identifier has no series in the source
        InvalidDataError: A series cannot be canonicalized

    Example:
        ```python
        container = initialize(["AAA", "BBB"], CSVDataSource("data/"))
        ```
    """
    symbols = normalize_universe(universe)
    if not symbols:
        raise InvalidConfigError("universe", list(symbols), "at least one security identifier")

    source = as_data_source(source)
    series = {symbol: source.load(symbol) for symbol in symbols}

    logger.info(
        f"Initialized universe {list(symbols)} from {source.name} "
        f"({sum(len(frame) for frame in series.values())} rows)"
    )
    return StrategyContainer(universe=symbols, series=series)
