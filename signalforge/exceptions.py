"""
SignalForge - Exception Classes
===============================

Exception hierarchy for strategy construction, simulation and optimization.

Exception Hierarchy:
    BacktestError (base)
    ├── ConfigurationError
    │   └── InvalidConfigError
    ├── DataError
    │   ├── UnknownSecurityError
    │   ├── InvalidDataError
    │   └── InsufficientHistoryError
    ├── StrategyError
    │   ├── DuplicateIndicatorError
    │   ├── GeneratorArgumentError
    │   │   └── UnknownGeneratorError
    │   ├── GeneratorOutputError
    │   ├── DuplicateSignalError
    │   ├── UndefinedColumnError
    │   ├── ExpressionError
    │   └── UnknownSignalError
    └── OptimizationError
        └── EmptyRangeError

Author: SignalForge Team
Version: 1.0.0
"""

from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime, timezone


class BacktestError(Exception):
    """
    Base exception for all engine errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error code for programmatic handling
        details: Additional context about the error
        timestamp: When the error occurred
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        error_code: str = "SF_ERROR",
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        self.recoverable = recoverable
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable
        }

    def __reduce__(self):
        # Subclasses take domain arguments, rebuild from the base fields
        return (_rebuild_error, (self.__class__, self.message, self.error_code, self.details, self.recoverable))

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code}')"


def _rebuild_error(cls, message, error_code, details, recoverable):
    error = cls.__new__(cls)
    BacktestError.__init__(error, message, error_code, details, recoverable)
    for key, value in details.items():
        if not hasattr(error, key):
            setattr(error, key, value)
    return error


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(BacktestError):
    """Base exception for configuration-related errors."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", "SF_CONFIG_ERROR"),
            **kwargs
        )


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(
        self,
        param_name: str,
        param_value: Any,
        expected: str,
        message: Optional[str] = None
    ):
        self.param_name = param_name
        self.param_value = param_value
        self.expected = expected

        msg = message or f"Invalid configuration for '{param_name}': got {param_value!r}, expected {expected}"
        super().__init__(
            message=msg,
            error_code="SF_INVALID_CONFIG",
            details={
                "param_name": param_name,
                "param_value": str(param_value),
                "expected": expected
            }
        )


# =============================================================================
# DATA ERRORS
# =============================================================================

class DataError(BacktestError):
    """Base exception for data-related errors."""

    def __init__(self, message: str, symbol: Optional[str] = None, **kwargs):
        self.symbol = symbol
        details = kwargs.pop("details", {})
        if symbol:
            details["symbol"] = symbol
        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", "SF_DATA_ERROR"),
            details=details,
            **kwargs
        )


class UnknownSecurityError(DataError):
    """Raised when a universe member has no available series."""

    def __init__(self, symbol: str, source: Optional[str] = None):
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(
            message=f"No price series available for '{symbol}'{where}",
            symbol=symbol,
            error_code="SF_UNKNOWN_SECURITY",
            details={"source": source}
        )


class InvalidDataError(DataError):
    """Raised when data format or content is invalid."""

    def __init__(
        self,
        symbol: str,
        issue: str,
        column: Optional[str] = None
    ):
        self.issue = issue
        self.column = column

        location = f" column '{column}'" if column else ""
        super().__init__(
            message=f"Invalid data for {symbol}{location}: {issue}",
            symbol=symbol,
            error_code="SF_INVALID_DATA",
            details={
                "issue": issue,
                "column": column
            }
        )


class InsufficientHistoryError(DataError):
    """
    Indicator window longer than the available history.

    The indicator column is still produced (entirely missing values). The
    pipeline records the condition on the container instead of raising,
    unless strict history checking is enabled.
    """

    def __init__(
        self,
        symbol: str,
        indicator: str,
        window: int,
        available_rows: int
    ):
        self.indicator = indicator
        self.window = window
        self.available_rows = available_rows

        super().__init__(
            message=(
                f"Indicator '{indicator}' needs {window} rows but {symbol} "
                f"has {available_rows}"
            ),
            symbol=symbol,
            error_code="SF_INSUFFICIENT_HISTORY",
            details={
                "indicator": indicator,
                "window": window,
                "available_rows": available_rows
            },
            recoverable=True
        )


# =============================================================================
# STRATEGY DECLARATION ERRORS
# =============================================================================

class StrategyError(BacktestError):
    """Base exception for malformed indicator/signal/strategy declarations."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", "SF_STRATEGY_ERROR"),
            **kwargs
        )


class DuplicateIndicatorError(StrategyError):
    """Raised when an indicator name already exists as a column."""

    def __init__(self, name: str, symbols: Iterable[str]):
        self.name = name
        self.symbols = list(symbols)
        super().__init__(
            message=f"Column '{name}' already exists for {', '.join(self.symbols)}",
            error_code="SF_DUPLICATE_INDICATOR",
            details={"name": name, "symbols": self.symbols}
        )


class GeneratorArgumentError(StrategyError):
    """Raised when generator arguments cannot be bound."""

    def __init__(
        self,
        generator: str,
        issue: str,
        argument: Optional[str] = None,
        symbol: Optional[str] = None,
        **kwargs
    ):
        self.generator = generator
        self.issue = issue
        self.argument = argument
        self.symbol = symbol

        where = f" for {symbol}" if symbol else ""
        super().__init__(
            message=kwargs.pop("message", f"Generator '{generator}'{where}: {issue}"),
            error_code=kwargs.pop("error_code", "SF_GENERATOR_ARGUMENT"),
            details={
                "generator": generator,
                "issue": issue,
                "argument": argument,
                "symbol": symbol
            }
        )


class UnknownGeneratorError(GeneratorArgumentError):
    """Raised when a generator is not part of the registered capability set."""

    def __init__(self, generator: str, available: Optional[List[str]] = None):
        self.available = available or []
        super().__init__(
            generator=generator,
            issue="not a registered generator",
            message=f"Unknown generator '{generator}'",
            error_code="SF_UNKNOWN_GENERATOR"
        )
        self.details["available"] = self.available


class GeneratorOutputError(StrategyError):
    """Raised when a generator returns something other than an aligned column."""

    def __init__(self, generator: str, symbol: str, issue: str):
        self.generator = generator
        self.symbol = symbol
        self.issue = issue
        super().__init__(
            message=f"Generator '{generator}' produced invalid output for {symbol}: {issue}",
            error_code="SF_GENERATOR_OUTPUT",
            details={"generator": generator, "symbol": symbol, "issue": issue}
        )


class DuplicateSignalError(StrategyError):
    """Raised when a signal name is declared twice or clashes with a column."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            message=f"Signal '{name}' already exists",
            error_code="SF_DUPLICATE_SIGNAL",
            details={"name": name}
        )


class UndefinedColumnError(StrategyError):
    """Raised when an expression or generator references a missing column."""

    def __init__(
        self,
        columns: Iterable[str],
        symbol: Optional[str] = None,
        context: Optional[str] = None
    ):
        self.columns = sorted(columns)
        self.symbol = symbol
        self.context = context

        where = f" for {symbol}" if symbol else ""
        what = f" in {context}" if context else ""
        super().__init__(
            message=f"Undefined column(s) {self.columns}{what}{where}",
            error_code="SF_UNDEFINED_COLUMN",
            details={"columns": self.columns, "symbol": symbol, "context": context}
        )


class ExpressionError(StrategyError):
    """Raised when a predicate expression cannot be parsed or is not allowed."""

    def __init__(self, expression: str, issue: str):
        self.expression = expression
        self.issue = issue
        super().__init__(
            message=f"Invalid expression {expression!r}: {issue}",
            error_code="SF_EXPRESSION",
            details={"expression": expression, "issue": issue}
        )


class UnknownSignalError(StrategyError):
    """Raised when compiling a signal that was never added."""

    def __init__(self, names: Iterable[str], available: Optional[Iterable[str]] = None):
        self.names = list(names)
        self.available = list(available or [])
        super().__init__(
            message=f"Unknown signal(s): {', '.join(self.names) or '<none given>'}",
            error_code="SF_UNKNOWN_SIGNAL",
            details={"names": self.names, "available": self.available}
        )


# =============================================================================
# OPTIMIZATION ERRORS
# =============================================================================

class OptimizationError(BacktestError):
    """Base exception for parameter search errors."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", "SF_OPTIMIZATION_ERROR"),
            **kwargs
        )


class EmptyRangeError(OptimizationError):
    """Raised when the optimization range has no values."""

    def __init__(self):
        super().__init__(
            message="Optimization range is empty",
            error_code="SF_EMPTY_RANGE"
        )
