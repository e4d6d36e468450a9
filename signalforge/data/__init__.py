"""
SignalForge - Data Layer
========================

Canonical Security Series loading and validation.
"""

from signalforge.data.sources import (
    BaseDataSource,
    InMemoryDataSource,
    CSVDataSource,
    as_data_source
)

from signalforge.data.validation import (
    REQUIRED_COLUMNS,
    canonicalize_series,
    validate_ohlcv_data
)

__all__ = [
    "BaseDataSource",
    "InMemoryDataSource",
    "CSVDataSource",
    "as_data_source",
    "REQUIRED_COLUMNS",
    "canonicalize_series",
    "validate_ohlcv_data"
]
