"""
SignalForge - Generator Registry
================================

Named capability set of indicator generators.

Indicators are never built from arbitrary code: a generator must be
registered under a name, declare which of its parameters are bound to
columns of the Security Series and, when it has one, which parameter is its
look-back window.

Usage:
    ```python
    from signalforge.indicators import register_generator

    @register_generator("midpoint", inputs=("high", "low"),
                        input_defaults={"high": "HIGH", "low": "LOW"},
                        window_arg=None)
    def midpoint(high, low):
        return (high + low) / 2
    ```

Author: SignalForge Team
Version: 1.0.0
"""

from __future__ import annotations

import inspect
import logging
import numbers
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from signalforge.exceptions import (
    GeneratorArgumentError,
    GeneratorOutputError,
    UnknownGeneratorError
)

logger = logging.getLogger(__name__)


GeneratorFunc = Callable[..., pd.Series]


@dataclass(frozen=True)
class GeneratorSpec:
    """
    Registered generator.

    Attributes:
        name: Registry name
        func: Function returning a same-length series
        inputs: Parameters bound to series columns
        input_defaults: Default column per input parameter
        window_arg: Parameter holding the look-back window, if any
        description: Short description
    """
    name: str
    func: GeneratorFunc
    inputs: Tuple[str, ...] = ("series",)
    input_defaults: Dict[str, str] = field(default_factory=dict)
    window_arg: Optional[str] = "window"
    description: str = ""

    @property
    def parameters(self) -> Dict[str, inspect.Parameter]:
        return dict(inspect.signature(self.func).parameters)

    # =========================================================================
    # ARGUMENT BINDING
    # =========================================================================

    def window(self, arguments: Mapping[str, Any]) -> Optional[int]:
        """Look-back window resolved from arguments or the function default."""
        if self.window_arg is None:
            return None
        if self.window_arg in arguments:
            return arguments[self.window_arg]
        default = self.parameters[self.window_arg].default
        return None if default is inspect.Parameter.empty else default

    def validate_arguments(self, arguments: Mapping[str, Any]) -> None:
        """
        Check argument names and the window value, independent of any data.

        Raises:
            GeneratorArgumentError: Unknown or missing arguments, or an
                invalid window
        """
        params = self.parameters

        unknown = [name for name in arguments if name not in params]
        if unknown:
            raise GeneratorArgumentError(
                generator=self.name,
                issue=f"unknown argument(s) {unknown}; accepts {list(params)}",
                argument=unknown[0]
            )

        for name, param in params.items():
            if name in self.inputs:
                if name not in arguments and name not in self.input_defaults:
                    raise GeneratorArgumentError(
                        generator=self.name,
                        issue=f"no column given for input '{name}'",
                        argument=name
                    )
                column = arguments.get(name, self.input_defaults.get(name))
                if not isinstance(column, str):
                    raise GeneratorArgumentError(
                        generator=self.name,
                        issue=f"input '{name}' must name a column, got {column!r}",
                        argument=name
                    )
            elif name not in arguments and param.default is inspect.Parameter.empty:
                raise GeneratorArgumentError(
                    generator=self.name,
                    issue=f"missing required argument '{name}'",
                    argument=name
                )

        if self.window_arg is not None:
            window = self.window(arguments)
            if (
                isinstance(window, bool)
                or not isinstance(window, numbers.Integral)
                or window < 1
            ):
                raise GeneratorArgumentError(
                    generator=self.name,
                    issue=f"'{self.window_arg}' must be a positive integer, got {window!r}",
                    argument=self.window_arg
                )

    def input_columns(self, arguments: Mapping[str, Any]) -> Dict[str, str]:
        """Column referenced by each input parameter."""
        return {
            name: arguments.get(name, self.input_defaults.get(name))
            for name in self.inputs
        }

    def apply(self, frame: pd.DataFrame, arguments: Mapping[str, Any], symbol: str) -> pd.Series:
        """
        Run the generator on one Security Series.

        Args:
            frame: Security Series
            arguments: Generator arguments (validated)
            symbol: Security identifier (for error messages)

        Returns:
            Float series aligned to ``frame.index``
        """
        columns = self.input_columns(arguments)
        missing = [col for col in columns.values() if col not in frame.columns]
        if missing:
            raise GeneratorArgumentError(
                generator=self.name,
                issue=f"column(s) {missing} not found",
                argument=missing[0],
                symbol=symbol
            )

        kwargs = {name: value for name, value in arguments.items() if name not in self.inputs}
        for name, column in columns.items():
            kwargs[name] = frame[column]

        try:
            output = self.func(**kwargs)
        except (ValueError, TypeError) as e:
            raise GeneratorArgumentError(
                generator=self.name,
                issue=str(e),
                symbol=symbol
            ) from e
        except Exception as e:
            raise GeneratorArgumentError(
                generator=self.name,
                issue=f"failed with {type(e).__name__}: {e}",
                symbol=symbol
            ) from e

        return self._check_output(output, frame, symbol)

    def _check_output(self, output: Any, frame: pd.DataFrame, symbol: str) -> pd.Series:
        if isinstance(output, np.ndarray):
            if output.ndim != 1 or len(output) != len(frame):
                raise GeneratorOutputError(self.name, symbol, f"expected {len(frame)} values, got shape {output.shape}")
            output = pd.Series(output, index=frame.index)

        if not isinstance(output, pd.Series):
            raise GeneratorOutputError(self.name, symbol, f"expected a Series, got {type(output).__name__}")

        if len(output) != len(frame):
            raise GeneratorOutputError(self.name, symbol, f"length {len(output)} != series length {len(frame)}")

        if not output.index.equals(frame.index):
            raise GeneratorOutputError(self.name, symbol, "output index is not aligned with the series dates")

        try:
            return output.astype(float)
        except (ValueError, TypeError) as e:
            raise GeneratorOutputError(self.name, symbol, f"non-numeric output: {e}") from e


# =============================================================================
# REGISTRY
# =============================================================================

class GeneratorRegistry:
    """
    Mapping of names to generator specs.

    The module-level ``default_registry`` holds the built-in generators;
    build a separate registry to isolate custom capability sets.
    """

    def __init__(self):
        self._generators: Dict[str, GeneratorSpec] = {}

    def register(
        self,
        name: str,
        func: GeneratorFunc,
        inputs: Tuple[str, ...] = ("series",),
        input_defaults: Optional[Dict[str, str]] = None,
        window_arg: Optional[str] = "window",
        description: str = "",
        replace: bool = False
    ) -> GeneratorSpec:
        """
        Register ``func`` under ``name``.

        Raises:
            ValueError: If the name is taken (and ``replace`` is False) or the
                declared inputs/window are not parameters of ``func``
        """
        if name in self._generators and not replace:
            raise ValueError(f"Generator '{name}' is already registered")

        params = inspect.signature(func).parameters
        undeclared = [p for p in inputs if p not in params]
        if window_arg is not None:
            if window_arg not in params:
                undeclared.append(window_arg)
        if undeclared:
            raise ValueError(f"Generator '{name}' has no parameter(s) {undeclared}")

        if input_defaults is None:
            input_defaults = {p: "CLOSE" for p in inputs} if len(inputs) == 1 else {}

        spec = GeneratorSpec(
            name=name,
            func=func,
            inputs=tuple(inputs),
            input_defaults=dict(input_defaults),
            window_arg=window_arg,
            description=description or (inspect.getdoc(func) or "").split("\n")[0]
        )
        self._generators[name] = spec
        logger.debug(f"Registered generator '{name}'")
        return spec

    def generator(self, name: str, **options) -> Callable[[GeneratorFunc], GeneratorFunc]:
        """Decorator form of ``register``."""
        def decorator(func: GeneratorFunc) -> GeneratorFunc:
            self.register(name, func, **options)
            return func
        return decorator

    def resolve(self, generator: Union[str, GeneratorFunc, GeneratorSpec]) -> GeneratorSpec:
        """
        Look up a generator by name, registered function or spec.

        Raises:
            UnknownGeneratorError: If it is not registered here
        """
        if isinstance(generator, GeneratorSpec):
            generator = generator.name

        if isinstance(generator, str):
            spec = self._generators.get(generator)
            if spec is None:
                raise UnknownGeneratorError(generator, available=self.names())
            return spec

        if callable(generator):
            for spec in self._generators.values():
                if spec.func is generator:
                    return spec
            label = getattr(generator, "__name__", repr(generator))
            raise UnknownGeneratorError(label, available=self.names())

        raise UnknownGeneratorError(repr(generator), available=self.names())

    def names(self) -> List[str]:
        return sorted(self._generators)

    def copy(self) -> "GeneratorRegistry":
        registry = GeneratorRegistry()
        registry._generators = dict(self._generators)
        return registry

    def __contains__(self, name: object) -> bool:
        return name in self._generators

    def __len__(self) -> int:
        return len(self._generators)

    def __repr__(self) -> str:
        return f"<GeneratorRegistry({self.names()})>"


default_registry = GeneratorRegistry()


def register_generator(name: str, **options) -> Callable[[GeneratorFunc], GeneratorFunc]:
    """Register a generator in the default registry."""
    return default_registry.generator(name, **options)
