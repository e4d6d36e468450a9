"""
SignalForge - Signals
=====================

Predicate expressions and the signal engine stage.
"""

from signalforge.signals.expression import (
    ColumnPredicate,
    Expression,
    compile_predicate
)

from signalforge.signals.engine import add_signal

__all__ = [
    "ColumnPredicate",
    "Expression",
    "compile_predicate",
    "add_signal"
]
