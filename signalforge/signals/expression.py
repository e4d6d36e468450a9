"""
SignalForge - Predicate Expressions
===================================

A small boolean expression language over Security Series columns.

Expressions use Python syntax but are parsed into an AST and evaluated by a
whitelist walker; nothing is passed to ``eval``. Bare names are column
references resolved against the series at apply time.

Supported:
    - column names, int/float/bool literals
    - arithmetic: ``+ - * / %`` and unary ``-``
    - comparisons, including chains (``30 < RSI < 70``)
    - logic: ``and``, ``or``, ``not`` (also ``&``, ``|``, ``~``)
    - functions: ``abs(x)``, ``shift(x, n)`` with ``n >= 0``,
      ``cross_above(a, b)``, ``cross_below(a, b)``

Example:
    ```python
    expr = Expression("cross_above(SMA_FAST, SMA_SLOW) and VOLUME > 1e6")
    expr.columns           # frozenset({'SMA_FAST', 'SMA_SLOW', 'VOLUME'})
    mask = expr.evaluate(frame)
    ```
"""

from __future__ import annotations

import ast
import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Tuple, Union

import numpy as np
import pandas as pd

from signalforge.exceptions import ExpressionError


_BINARY_OPS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
}

_COMPARE_OPS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
}

# name -> number of positional arguments
_FUNCTIONS: Dict[str, int] = {
    "abs": 1,
    "shift": 2,
    "cross_above": 2,
    "cross_below": 2,
}


class Expression:
    """Parsed, validated predicate expression."""

    def __init__(self, text: str):
        if not isinstance(text, str) or not text.strip():
            raise ExpressionError(str(text), "expression must be a non-empty string")
        self.text = text.strip()

        try:
            self._tree = ast.parse(self.text, mode="eval")
        except SyntaxError as e:
            raise ExpressionError(self.text, f"syntax error: {e.msg}") from None

        names = set()
        self._validate(self._tree.body, names)
        self.columns: FrozenSet[str] = frozenset(names)

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def _validate(self, node: ast.AST, names: set) -> None:
        if isinstance(node, ast.BoolOp):
            for value in node.values:
                self._validate(value, names)
        elif isinstance(node, ast.UnaryOp):
            if not isinstance(node.op, (ast.Not, ast.USub, ast.UAdd, ast.Invert)):
                self._reject(node)
            self._validate(node.operand, names)
        elif isinstance(node, ast.BinOp):
            if type(node.op) not in _BINARY_OPS and not isinstance(node.op, (ast.BitAnd, ast.BitOr)):
                self._reject(node.op)
            self._validate(node.left, names)
            self._validate(node.right, names)
        elif isinstance(node, ast.Compare):
            for op in node.ops:
                if type(op) not in _COMPARE_OPS:
                    self._reject(op)
            self._validate(node.left, names)
            for comparator in node.comparators:
                self._validate(comparator, names)
        elif isinstance(node, ast.Name):
            names.add(node.id)
        elif isinstance(node, ast.Constant):
            if not isinstance(node.value, (int, float, bool)):
                raise ExpressionError(self.text, f"unsupported literal {node.value!r}")
        elif isinstance(node, ast.Call):
            self._validate_call(node, names)
        else:
            self._reject(node)

    def _validate_call(self, node: ast.Call, names: set) -> None:
        if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS:
            label = node.func.id if isinstance(node.func, ast.Name) else ast.dump(node.func)
            raise ExpressionError(self.text, f"unknown function {label!r}; allowed: {sorted(_FUNCTIONS)}")
        func = node.func.id
        if node.keywords or len(node.args) != _FUNCTIONS[func]:
            raise ExpressionError(self.text, f"{func}() takes {_FUNCTIONS[func]} positional argument(s)")
        if func == "shift":
            periods = node.args[1]
            if (
                not isinstance(periods, ast.Constant)
                or isinstance(periods.value, bool)
                or not isinstance(periods.value, int)
                or periods.value < 0
            ):
                raise ExpressionError(self.text, "shift() periods must be a non-negative integer literal")
            self._validate(node.args[0], names)
            return
        for arg in node.args:
            self._validate(arg, names)

    def _reject(self, node: ast.AST) -> None:
        raise ExpressionError(self.text, f"'{type(node).__name__}' is not allowed")

    # =========================================================================
    # EVALUATION
    # =========================================================================

    def evaluate(self, frame: pd.DataFrame) -> pd.Series:
        """
        Evaluate row-wise over ``frame``.

        Missing values compare as False, so rows without enough history
        never fire.

        Returns:
            Boolean series aligned with ``frame.index``
        """
        result = self._eval(self._tree.body, frame)
        return self._as_bool(result, frame.index)

    def _eval(self, node: ast.AST, frame: pd.DataFrame) -> Any:
        if isinstance(node, ast.Name):
            return frame[node.id]

        if isinstance(node, ast.Constant):
            return node.value

        if isinstance(node, ast.BoolOp):
            values = [self._as_bool(self._eval(v, frame), frame.index) for v in node.values]
            combine = operator.and_ if isinstance(node.op, ast.And) else operator.or_
            result = values[0]
            for value in values[1:]:
                result = combine(result, value)
            return result

        if isinstance(node, ast.UnaryOp):
            operand = self._eval(node.operand, frame)
            if isinstance(node.op, (ast.Not, ast.Invert)):
                return ~self._as_bool(operand, frame.index)
            if isinstance(node.op, ast.USub):
                return -operand
            return operand

        if isinstance(node, ast.BinOp):
            left = self._eval(node.left, frame)
            right = self._eval(node.right, frame)
            if isinstance(node.op, ast.BitAnd):
                return self._as_bool(left, frame.index) & self._as_bool(right, frame.index)
            if isinstance(node.op, ast.BitOr):
                return self._as_bool(left, frame.index) | self._as_bool(right, frame.index)
            return _BINARY_OPS[type(node.op)](left, right)

        if isinstance(node, ast.Compare):
            left = self._eval(node.left, frame)
            result = None
            for op, comparator in zip(node.ops, node.comparators):
                right = self._eval(comparator, frame)
                step = self._as_bool(_COMPARE_OPS[type(op)](left, right), frame.index)
                result = step if result is None else result & step
                left = right
            return result

        if isinstance(node, ast.Call):
            return self._call(node, frame)

        self._reject(node)

    def _call(self, node: ast.Call, frame: pd.DataFrame) -> Any:
        func = node.func.id

        if func == "shift":
            value = self._eval(node.args[0], frame)
            return _shift(value, node.args[1].value)

        args = [self._eval(arg, frame) for arg in node.args]

        if func == "abs":
            return abs(args[0])

        a, b = args
        if func == "cross_above":
            now = self._as_bool(a > b, frame.index)
            before = self._as_bool(_shift(a, 1) <= _shift(b, 1), frame.index)
        else:
            now = self._as_bool(a < b, frame.index)
            before = self._as_bool(_shift(a, 1) >= _shift(b, 1), frame.index)
        return now & before

    def _as_bool(self, value: Any, index: pd.Index) -> pd.Series:
        if isinstance(value, (bool, np.bool_)):
            return pd.Series(bool(value), index=index)
        if isinstance(value, pd.Series):
            if pd.api.types.is_bool_dtype(value.dtype):
                return value.fillna(False).astype(bool)
            if value.dtype == object:
                return value.map(lambda v: bool(v) if isinstance(v, (bool, np.bool_)) else False).astype(bool)
        raise ExpressionError(self.text, "logical operands must be boolean (comparisons or signals)")

    def __repr__(self) -> str:
        return f"Expression({self.text!r})"


def _shift(value: Any, periods: int) -> Any:
    if isinstance(value, pd.Series):
        return value.shift(periods)
    return value


# =============================================================================
# CALLABLE PREDICATES
# =============================================================================

@dataclass(frozen=True)
class ColumnPredicate:
    """
    Callable predicate bound to explicitly declared columns.

    ``func`` receives a frame holding only ``columns`` and must return a
    boolean series aligned with it.

    Example:
        ```python
        wide_range = ColumnPredicate(
            lambda f: (f["HIGH"] - f["LOW"]) > 2 * f["ATR"],
            columns=("HIGH", "LOW", "ATR"),
            name="wide_range"
        )
        ```
    """
    func: Callable[[pd.DataFrame], pd.Series]
    columns: Tuple[str, ...]
    name: str = ""

    @property
    def text(self) -> str:
        return self.name or getattr(self.func, "__name__", "predicate")

    def evaluate(self, frame: pd.DataFrame) -> pd.Series:
        try:
            result = self.func(frame[list(self.columns)])
        except Exception as e:
            raise ExpressionError(self.text, f"predicate failed with {type(e).__name__}: {e}") from e
        if isinstance(result, np.ndarray) and result.ndim == 1 and len(result) == len(frame):
            result = pd.Series(result, index=frame.index)
        if not isinstance(result, pd.Series) or not result.index.equals(frame.index):
            raise ExpressionError(self.text, "predicate must return a series aligned with the input rows")
        if not pd.api.types.is_bool_dtype(result.dtype) and result.dtype != object:
            raise ExpressionError(self.text, f"predicate returned {result.dtype}, expected bool")
        return result.fillna(False).astype(bool)


Predicate = Union[str, Expression, ColumnPredicate]


def compile_predicate(predicate: Predicate) -> Union[Expression, ColumnPredicate]:
    """
    Normalize a user predicate.

    Raises:
        ExpressionError: Unparseable text, disallowed constructs, or a bare
            callable without declared columns
    """
    if isinstance(predicate, (Expression, ColumnPredicate)):
        return predicate
    if isinstance(predicate, str):
        return Expression(predicate)
    if callable(predicate):
        raise ExpressionError(
            getattr(predicate, "__name__", repr(predicate)),
            "callable predicates must declare their columns via ColumnPredicate"
        )
    raise ExpressionError(repr(predicate), "predicate must be an expression string or ColumnPredicate")
