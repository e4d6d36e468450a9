"""
SignalForge - Security Series Validation
========================================

Canonical table checks for per-security OHLCV frames.

A canonical Security Series is a DataFrame indexed by a ``DatetimeIndex``
named ``date`` (strictly increasing, unique) with float columns
``OPEN, HIGH, LOW, CLOSE, VOLUME``.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

import pandas as pd

from signalforge.exceptions import InvalidDataError

logger = logging.getLogger(__name__)


REQUIRED_COLUMNS: Tuple[str, ...] = ("OPEN", "HIGH", "LOW", "CLOSE", "VOLUME")
PRICE_COLUMNS: Tuple[str, ...] = ("OPEN", "HIGH", "LOW", "CLOSE")
DATE_INDEX_NAME = "date"


# =============================================================================
# DATA VALIDATION
# =============================================================================

def _structure_issues(data: pd.DataFrame) -> List[str]:
    issues = []
    missing = [col for col in REQUIRED_COLUMNS if col not in data.columns]
    if missing:
        issues.append(f"Missing columns: {missing}")
    if not isinstance(data.index, pd.DatetimeIndex):
        issues.append("Index must be DatetimeIndex")
    elif data.index.has_duplicates:
        issues.append(f"{int(data.index.duplicated().sum())} duplicate dates")
    elif not data.index.is_monotonic_increasing:
        issues.append("Dates are not in increasing order")
    if data.empty:
        issues.append("Series has no rows")
    return issues


def _bar_issues(data: pd.DataFrame) -> List[str]:
    issues = []
    present = [col for col in REQUIRED_COLUMNS if col in data.columns]

    gaps = data[present].isna().sum()
    for col, count in gaps[gaps > 0].items():
        issues.append(f"{col} has {int(count)} missing values")

    if all(col in data.columns for col in PRICE_COLUMNS):
        body_high = data[["OPEN", "CLOSE"]].max(axis=1)
        body_low = data[["OPEN", "CLOSE"]].min(axis=1)
        bad_high = int((data["HIGH"] < body_high).sum())
        bad_low = int((data["LOW"] > body_low).sum())
        if bad_high:
            issues.append(f"{bad_high} bars with HIGH below OPEN/CLOSE")
        if bad_low:
            issues.append(f"{bad_low} bars with LOW above OPEN/CLOSE")

    priced = [col for col in (*PRICE_COLUMNS, "VOLUME") if col in data.columns]
    negative = int((data[priced] < 0).sum().sum())
    if negative:
        issues.append(f"{negative} negative price or volume values")
    return issues


def validate_ohlcv_data(
    data: pd.DataFrame,
    symbol: str = "Unknown"
) -> Tuple[bool, List[str]]:
    """
    Check a Security Series against the canonical table rules.

    Structural problems (columns, date index) and bar-level anomalies
    (missing values, HIGH/LOW outside the OPEN/CLOSE body, negative values)
    are reported, not raised. ``canonicalize_series`` logs whatever survives
    canonicalization at WARNING.

    Args:
        data: Frame to check
        symbol: Security identifier (for log messages)

    Returns:
        Tuple of (is_valid, list_of_issues)
    """
    issues = _structure_issues(data)
    if data.columns.isin(REQUIRED_COLUMNS).any():
        issues.extend(_bar_issues(data))

    if issues:
        logger.debug(f"Validation issues for {symbol}: {issues}")
    return not issues, issues


def _parse_index(frame: pd.DataFrame, symbol: str) -> pd.DatetimeIndex:
    index = frame.index
    if isinstance(index, pd.DatetimeIndex):
        return index
    # Integer positions would otherwise parse as epoch nanoseconds
    if isinstance(index, pd.RangeIndex) or pd.api.types.is_numeric_dtype(index.dtype):
        raise InvalidDataError(
            symbol=symbol,
            issue=f"No date column or date index (index is {index.dtype})",
            column=DATE_INDEX_NAME
        )
    try:
        return pd.DatetimeIndex(pd.to_datetime(index))
    except (ValueError, TypeError) as e:
        raise InvalidDataError(symbol=symbol, issue=f"Unparseable dates: {e}") from e


def canonicalize_series(data: pd.DataFrame, symbol: str) -> pd.DataFrame:
    """
    Convert a raw price frame into a canonical Security Series.

    Column names are matched case-insensitively, a ``date`` column (if any)
    becomes the index, rows are sorted by date and price gaps are
    forward-filled.

    Args:
        data: Raw frame from a data collaborator
        symbol: Security identifier (for error messages)

    Returns:
        New canonical DataFrame

    Raises:
        InvalidDataError: Missing columns, unparseable or duplicate dates,
            or an empty series
    """
    frame = data.copy()

    rename = {}
    for col in frame.columns:
        key = str(col).strip()
        if key.upper() in REQUIRED_COLUMNS:
            rename[col] = key.upper()
        elif key.lower() == DATE_INDEX_NAME:
            rename[col] = DATE_INDEX_NAME
    frame = frame.rename(columns=rename)

    if DATE_INDEX_NAME in frame.columns:
        frame = frame.set_index(DATE_INDEX_NAME)

    frame.index = _parse_index(frame, symbol)
    frame.index.name = DATE_INDEX_NAME

    missing = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
    if missing:
        raise InvalidDataError(symbol=symbol, issue=f"Missing columns: {missing}")

    if frame.empty:
        raise InvalidDataError(symbol=symbol, issue="Series has no rows")

    if frame.index.duplicated().any():
        raise InvalidDataError(
            symbol=symbol,
            issue=f"{int(frame.index.duplicated().sum())} duplicate dates"
        )

    if not frame.index.is_monotonic_increasing:
        logger.debug(f"Sorting unordered series for {symbol}")
        frame = frame.sort_index()

    try:
        frame[list(REQUIRED_COLUMNS)] = frame[list(REQUIRED_COLUMNS)].astype(float)
    except (ValueError, TypeError) as e:
        raise InvalidDataError(symbol=symbol, issue=f"Non-numeric prices: {e}") from e

    nan_count = int(frame[list(PRICE_COLUMNS)].isna().sum().sum())
    if nan_count > 0:
        logger.warning(f"{symbol} contains {nan_count} NaN prices, forward-filling")
        frame[list(PRICE_COLUMNS)] = frame[list(PRICE_COLUMNS)].ffill()

    if frame["CLOSE"].isna().all():
        raise InvalidDataError(symbol=symbol, issue="No valid closing prices", column="CLOSE")

    _, issues = validate_ohlcv_data(frame, symbol)
    for issue in issues:
        logger.warning(f"{symbol}: {issue}")

    return frame
