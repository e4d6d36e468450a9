"""
SignalForge - Optimizer
=======================

Brute-force parameter sweep over the full strategy pipeline.

Every trial builds a fresh container, applies the indicator and signal
templates with the trial value substituted, compiles, backtests and scores
the run by its final account value.

Placeholders:
    - ``"{param}"`` inside any string (names, expressions, argument values).
      A string that is exactly ``"{param}"`` is replaced by the raw value, so
      ``{"window": "{param}"}`` yields an integer window.
    - ``PARAM`` as an argument value.

Example:
    ```python
    result = optimize_strategy(
        container_factory=lambda: initialize(["AAA"], source),
        generator_template=IndicatorTemplate("SMA_{param}", "sma", {"window": PARAM}),
        optimize_range=[10, 20, 30],
        signal_template=SignalTemplate("trend", "CLOSE > SMA_{param}"),
    )
    print(result.best_parameter, result.trial_count)
    ```

Author: SignalForge Team
Version: 1.0.0
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from signalforge.compiler import compile_strategy
from signalforge.config import EngineSettings
from signalforge.engine.backtest_engine import BacktestConfig
from signalforge.engine.executor import run_backtest
from signalforge.enums import Direction
from signalforge.exceptions import BacktestError, EmptyRangeError
from signalforge.indicators.pipeline import add_indicator
from signalforge.indicators.registry import GeneratorRegistry
from signalforge.models.container import StrategyContainer
from signalforge.models.optimization import OptimizationResult, TrialFailure, TrialResult
from signalforge.signals.engine import add_signal
from signalforge.signals.expression import Expression, Predicate

logger = logging.getLogger(__name__)

PLACEHOLDER = "{param}"


class _Param:
    """Sentinel replaced by the trial value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __reduce__(self):
        return (_Param, ())

    def __repr__(self) -> str:
        return "PARAM"


PARAM = _Param()


def substitute(template: Any, value: Any) -> Any:
    """Replace placeholders in ``template`` with ``value``."""
    if template is PARAM:
        return value
    if isinstance(template, str):
        if template == PLACEHOLDER:
            return value
        return template.replace(PLACEHOLDER, str(value))
    if isinstance(template, Expression):
        if PLACEHOLDER in template.text:
            return Expression(template.text.replace(PLACEHOLDER, str(value)))
        return template
    if isinstance(template, dict):
        return {key: substitute(item, value) for key, item in template.items()}
    if isinstance(template, (list, tuple)):
        return type(template)(substitute(item, value) for item in template)
    return template


# =============================================================================
# TEMPLATES
# =============================================================================

@dataclass(frozen=True)
class IndicatorTemplate:
    """Indicator declaration with placeholders."""
    name: str
    generator: Any
    arguments: Dict[str, Any] = field(default_factory=dict)

    def resolve(self, value: Any) -> Tuple[str, Any, Dict[str, Any]]:
        return substitute(self.name, value), self.generator, substitute(dict(self.arguments), value)


@dataclass(frozen=True)
class SignalTemplate:
    """Signal declaration with placeholders."""
    name: str
    predicate: Predicate
    direction: Union[Direction, str] = Direction.BUY

    def resolve(self, value: Any) -> Tuple[str, Predicate, Union[Direction, str]]:
        return substitute(self.name, value), substitute(self.predicate, value), self.direction


def _as_list(templates):
    if isinstance(templates, (IndicatorTemplate, SignalTemplate)):
        return [templates]
    return list(templates)


# =============================================================================
# SWEEP
# =============================================================================

def optimize_strategy(
    container_factory: Callable[[], StrategyContainer],
    generator_template: Union[IndicatorTemplate, Sequence[IndicatorTemplate]],
    optimize_range: Iterable[Any],
    signal_template: Union[SignalTemplate, Sequence[SignalTemplate]],
    *,
    compile_signals: Optional[Sequence[str]] = None,
    config: Optional[BacktestConfig] = None,
    registry: Optional[GeneratorRegistry] = None,
    settings: Optional[EngineSettings] = None,
    parallel: bool = False,
    max_workers: Optional[int] = None
) -> OptimizationResult:
    """
    Run one full backtest per value in ``optimize_range``.

    Args:
        container_factory: Returns a fresh initialized container per trial
        generator_template: Indicator template(s) applied in order
        optimize_range: Parameter values, tried in order
        signal_template: Signal template(s) applied in order
        compile_signals: Signal names to compile (placeholders allowed);
            default is every templated signal
        config: Backtest configuration shared by all trials
        registry: Generator registry for the indicator stage
        settings: Engine settings for the indicator and signal stages
        parallel: Run trials on a thread pool
        max_workers: Pool size

    Returns:
        OptimizationResult with successful trials, failures and trial count

    Raises:
        EmptyRangeError: ``optimize_range`` has no values
    """
    values = list(optimize_range)
    if not values:
        raise EmptyRangeError()

    indicators = _as_list(generator_template)
    signals = _as_list(signal_template)
    config = config or BacktestConfig.from_settings(settings)
    config.validate()

    def trial(value: Any) -> float:
        container = container_factory()
        for template in indicators:
            name, generator, arguments = template.resolve(value)
            container = add_indicator(container, name, generator, arguments, registry=registry, settings=settings)
        names = []
        for template in signals:
            name, predicate, direction = template.resolve(value)
            container = add_signal(container, name, predicate, direction, settings=settings)
            names.append(name)
        if compile_signals is not None:
            names = [substitute(n, value) for n in compile_signals]
        container = compile_strategy(container, names)
        container = run_backtest(container, config)
        return container.final_value

    logger.info(f"Optimizing over {len(values)} values{' (parallel)' if parallel else ''}")

    result = OptimizationResult()
    if parallel and len(values) > 1:
        outcomes = _run_parallel(trial, values, max_workers)
    else:
        outcomes = [_run_trial(trial, index, value) for index, value in enumerate(values)]

    for outcome in outcomes:
        if isinstance(outcome, TrialFailure):
            result.record_failure(outcome)
        else:
            result.record_trial(outcome)

    best = result.best
    if best is None:
        logger.warning(f"All {result.trial_count} trials failed")
    else:
        logger.info(
            f"Optimization complete: {result.trial_count} trials, {len(result.failures)} failed, "
            f"best {best.parameter!r} -> {best.objective:,.2f}"
        )
    return result


def _run_trial(trial: Callable[[Any], float], index: int, value: Any) -> Union[TrialResult, TrialFailure]:
    try:
        objective = trial(value)
    except BacktestError as e:
        logger.warning(f"Trial {index} ({value!r}) failed: {e}")
        return TrialFailure(parameter=value, trial_index=index, error_type=type(e).__name__, message=e.message)
    except Exception as e:
        logger.warning(f"Trial {index} ({value!r}) failed with {type(e).__name__}: {e}")
        return TrialFailure(parameter=value, trial_index=index, error_type=type(e).__name__, message=str(e))

    logger.debug(f"Trial {index} ({value!r}): {objective:,.2f}")
    return TrialResult(parameter=value, objective=objective, trial_index=index)


def _run_parallel(
    trial: Callable[[Any], float],
    values: List[Any],
    max_workers: Optional[int]
) -> List[Union[TrialResult, TrialFailure]]:
    outcomes = []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(_run_trial, trial, index, value): index
            for index, value in enumerate(values)
        }
        for future in as_completed(futures):
            outcomes.append(future.result())
    return sorted(outcomes, key=lambda outcome: outcome.trial_index)


def apply_optimization(container: StrategyContainer, result: OptimizationResult) -> StrategyContainer:
    """Copy the sweep's trial count and best result onto a new container."""
    updated = container.copy()
    updated.trial_count = result.trial_count
    updated.best_parameter = result.best_parameter
    updated.best_objective = result.best_objective
    return updated
