"""
SignalForge - Indicator Pipeline
================================

Appends a derived column to every Security Series in a container.

Author: SignalForge Team
Version: 1.0.0
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from signalforge.config import EngineSettings, get_settings
from signalforge.exceptions import (
    DuplicateIndicatorError,
    GeneratorArgumentError,
    InsufficientHistoryError
)
from signalforge.indicators import generators as _builtin_generators  # noqa: F401  (registers built-ins)
from signalforge.indicators.registry import (
    GeneratorFunc,
    GeneratorRegistry,
    GeneratorSpec,
    default_registry
)
from signalforge.models.container import IndicatorDescriptor, StrategyContainer
from signalforge.utils.parallel import map_securities

logger = logging.getLogger(__name__)


def add_indicator(
    container: StrategyContainer,
    name: str,
    generator: Union[str, GeneratorFunc, GeneratorSpec],
    generator_args: Optional[Mapping[str, Any]] = None,
    *,
    registry: Optional[GeneratorRegistry] = None,
    settings: Optional[EngineSettings] = None
) -> StrategyContainer:
    """
    Apply a registered generator to each security and append column ``name``.

    Args:
        container: Input container (left unchanged)
        name: Output column name
        generator: Registered generator name or function
        generator_args: Generator arguments; input parameters take column
            names, e.g. ``{"series": "CLOSE", "window": 20}``
        registry: Generator registry (default: built-in registry)
        settings: Engine settings (default: ``get_settings()``)

    Returns:
        New container with the indicator column and descriptor added

    Raises:
        UnknownGeneratorError: Generator not registered
        DuplicateIndicatorError: ``name`` already exists as a column
        GeneratorArgumentError: Bad arguments or missing input columns
        GeneratorOutputError: Generator output not aligned with the series
        InsufficientHistoryError: Window exceeds history (strict mode only)

    Example:
        ```python
        container = add_indicator(container, "SMA20", "sma", {"window": 20})
        container = add_indicator(container, "SMA20_SLOPE", "momentum",
                                  {"series": "SMA20", "window": 1})
        ```
    """
    registry = registry or default_registry
    settings = settings or get_settings()

    if not isinstance(name, str) or not name:
        raise GeneratorArgumentError(
            generator=str(generator),
            issue=f"indicator name must be a non-empty string, got {name!r}"
        )

    spec = registry.resolve(generator)
    arguments = dict(generator_args or {})

    clashes = container.symbols_with_column(name)
    if clashes or name in container.indicators or name in container.signals:
        raise DuplicateIndicatorError(name, clashes or container.universe)

    spec.validate_arguments(arguments)

    flags = _history_flags(container, name, spec.window(arguments))
    if flags and settings.strict_history:
        raise flags[0]

    outputs = map_securities(
        lambda symbol: spec.apply(container.series[symbol], arguments, symbol),
        container.universe,
        parallel=settings.parallel_securities,
        max_workers=settings.max_workers
    )

    updated = container.copy()
    for symbol, column in outputs.items():
        updated.series[symbol][name] = column
    updated.indicators[name] = IndicatorDescriptor(name=name, generator=spec.name, arguments=arguments)

    for flag in flags:
        logger.warning(flag.message)
    updated.warnings.extend(flags)

    logger.info(f"Added indicator '{name}' ({spec.name} {arguments}) to {len(container.universe)} securities")
    return updated


def _history_flags(container: StrategyContainer, name: str, window: Optional[int]):
    if window is None:
        return []
    return [
        InsufficientHistoryError(
            symbol=symbol,
            indicator=name,
            window=window,
            available_rows=len(container.series[symbol])
        )
        for symbol in container.universe
        if window > len(container.series[symbol])
    ]
