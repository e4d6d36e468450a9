"""
SignalForge - Indicators
========================

Generator registry, built-in generators and the indicator pipeline stage.
"""

from signalforge.indicators.registry import (
    GeneratorRegistry,
    GeneratorSpec,
    default_registry,
    register_generator
)

from signalforge.indicators import generators

from signalforge.indicators.pipeline import add_indicator

__all__ = [
    "GeneratorRegistry",
    "GeneratorSpec",
    "default_registry",
    "register_generator",
    "generators",
    "add_indicator"
]
