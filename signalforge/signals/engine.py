"""
SignalForge - Signal Engine
===========================

Evaluates boolean predicates into per-security signal columns.

Author: SignalForge Team
Version: 1.0.0
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from signalforge.config import EngineSettings, get_settings
from signalforge.enums import Direction
from signalforge.exceptions import (
    DuplicateSignalError,
    InvalidConfigError,
    UndefinedColumnError
)
from signalforge.models.container import SignalDescriptor, StrategyContainer
from signalforge.signals.expression import Predicate, compile_predicate
from signalforge.utils.parallel import map_securities

logger = logging.getLogger(__name__)


def add_signal(
    container: StrategyContainer,
    name: str,
    predicate: Predicate,
    direction: Union[Direction, str] = Direction.BUY,
    *,
    settings: Optional[EngineSettings] = None
) -> StrategyContainer:
    """
    Evaluate ``predicate`` per security and append boolean column ``name``.

    Args:
        container: Input container (left unchanged)
        name: Signal (and column) name
        predicate: Expression string, Expression or ColumnPredicate
        direction: Trade direction when the signal is true (default BUY)
        settings: Engine settings (default: ``get_settings()``)

    Returns:
        New container with the signal column and descriptor added

    Raises:
        DuplicateSignalError: Name already used by a signal or column
        UndefinedColumnError: Predicate references a missing column
        ExpressionError: Predicate cannot be parsed or is not allowed

    Example:
        ```python
        container = add_signal(container, "trend_up", "CLOSE > SMA20")
        container = add_signal(container, "trend_down", "CLOSE < SMA20", "sell")
        ```
    """
    settings = settings or get_settings()

    if not isinstance(name, str) or not name:
        raise InvalidConfigError("name", name, "a non-empty signal name")

    try:
        direction = Direction.parse(direction)
    except ValueError:
        raise InvalidConfigError("direction", direction, "'buy' or 'sell'") from None

    if name in container.signals or container.symbols_with_column(name):
        raise DuplicateSignalError(name)

    compiled = compile_predicate(predicate)
    columns = tuple(sorted(compiled.columns))

    # Pre-flight: every referenced column must exist for every security
    for symbol in container.universe:
        missing = set(columns) - set(container.series[symbol].columns)
        if missing:
            raise UndefinedColumnError(missing, symbol=symbol, context=f"signal '{name}'")

    masks = map_securities(
        lambda symbol: compiled.evaluate(container.series[symbol]),
        container.universe,
        parallel=settings.parallel_securities,
        max_workers=settings.max_workers
    )

    updated = container.copy()
    for symbol, mask in masks.items():
        updated.series[symbol][name] = mask
    updated.signals[name] = SignalDescriptor(
        name=name,
        predicate=compiled.text,
        direction=direction,
        columns=columns
    )

    fired = sum(int(mask.sum()) for mask in masks.values())
    logger.info(f"Added {direction.value} signal '{name}' ({compiled.text}): {fired} true rows")
    return updated
